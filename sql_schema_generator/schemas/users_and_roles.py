"""
A generic user and role schema.

Usable directly from the command line:

    sql-schema-generator -s sql_schema_generator.schemas.users_and_roles:create_users_and_roles
"""

from typing import Optional

from sql_schema_generator.codegen.factories import FactoryMethod, MethodParameter, QueryMethod
from sql_schema_generator.domain.models import ColumnType, Database


def create_users_and_roles(db: Optional[Database] = None) -> Database:
    """Add the sys_user, sys_role, sys_user_role and sys_profile tables to a database."""
    if db is None:
        db = Database("users_and_roles")

    sys_user = db.add_table("sys_user")
    sys_role = db.add_table("sys_role")
    sys_user_role = db.add_table("sys_user_role")
    sys_profile = db.add_table("sys_profile")

    (sys_user
        .primary_key_column()
        .string_column("username", unique=True)
        .string_column("password")
        .string_column("email", unique=True)
        .date_time_column("date_created", default="now()")
        .boolean_column("is_active", default="true"))

    (sys_user_role
        .reference_column("user_id", sys_user)
        .reference_column("role_id", sys_role)
        .unique_constraint(["user_id", "role_id"]))

    (sys_role
        .primary_key_column()
        .string_column("role", unique=True)
        .string_column("description", nullable=True))

    (sys_profile
        .primary_key_column()
        .string_column("first_name")
        .string_column("last_name")
        .string_column("picture")
        .reference_column("user_id", sys_user))

    return db


FACTORY_METHODS = [
    FactoryMethod(
        table_name="sys_user",
        method_name="find_user",
        description="Find a user by username or email address.",
        parameters=[MethodParameter("username", ColumnType.STRING)],
        query_method=QueryMethod.EXECUTE_QUERY_SINGLE,
        query="SELECT * FROM sys_user WHERE lower(username)=lower(:username) OR lower(email)=lower(:username)",
    ),
    FactoryMethod(
        table_name="sys_user",
        method_name="get_roles",
        description="Given a user_id this method returns the user roles.",
        parameters=[MethodParameter("user_id", ColumnType.NUMBER)],
        query_method=QueryMethod.EXECUTE_QUERY,
        return_table="sys_role",
        query="""
            SELECT r.*
            FROM sys_user_role ur
                INNER JOIN sys_user u ON u.id = ur.user_id
                INNER JOIN sys_role r ON r.id = ur.role_id
            WHERE u.id = :user_id
        """,
    ),
]

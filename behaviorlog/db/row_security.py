"""PostgreSQL row security policies keyed off the bound session variables.

The policies compare each row's ``org_id`` to ``app.current_org_id``, which
``Database.tenant_session`` sets transaction-locally before any statement
runs. A connection with no binding sees and writes nothing.
"""

from behaviorlog.db.models import TENANT_TABLES, AuditLog

ORG_SETTING = "app.current_org_id"
USER_SETTING = "app.current_user_id"
ROLE_SETTING = "app.current_role"

_CURRENT_ORG = f"NULLIF(current_setting('{ORG_SETTING}', true), '')::uuid"


def row_security_statements() -> list[str]:
    """DDL enabling row security on every tenant-partitioned table."""
    statements: list[str] = []

    for table in TENANT_TABLES:
        statements.extend(
            [
                f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY",
                f"ALTER TABLE {table} FORCE ROW LEVEL SECURITY",
                f"CREATE POLICY {table}_tenant_isolation ON {table} "
                f"USING (org_id = {_CURRENT_ORG}) "
                f"WITH CHECK (org_id = {_CURRENT_ORG})",
            ]
        )

    # Audit rows: read and append only. No UPDATE or DELETE policy exists.
    audit = AuditLog.__tablename__
    statements.extend(
        [
            f"ALTER TABLE {audit} ENABLE ROW LEVEL SECURITY",
            f"ALTER TABLE {audit} FORCE ROW LEVEL SECURITY",
            f"CREATE POLICY {audit}_tenant_select ON {audit} FOR SELECT "
            f"USING (org_id = {_CURRENT_ORG})",
            f"CREATE POLICY {audit}_tenant_insert ON {audit} FOR INSERT "
            f"WITH CHECK (org_id = {_CURRENT_ORG})",
        ]
    )
    return statements


def drop_row_security_statements() -> list[str]:
    """DDL reversing ``row_security_statements``."""
    statements: list[str] = []
    for table in TENANT_TABLES:
        statements.extend(
            [
                f"DROP POLICY IF EXISTS {table}_tenant_isolation ON {table}",
                f"ALTER TABLE {table} NO FORCE ROW LEVEL SECURITY",
                f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY",
            ]
        )

    audit = AuditLog.__tablename__
    statements.extend(
        [
            f"DROP POLICY IF EXISTS {audit}_tenant_select ON {audit}",
            f"DROP POLICY IF EXISTS {audit}_tenant_insert ON {audit}",
            f"ALTER TABLE {audit} NO FORCE ROW LEVEL SECURITY",
            f"ALTER TABLE {audit} DISABLE ROW LEVEL SECURITY",
        ]
    )
    return statements

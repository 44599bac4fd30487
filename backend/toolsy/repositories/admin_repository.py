"""
Admin Repository - roles and audit log

Author: TM3
Date: 2026-03-05
"""
import logging
from typing import List, Optional, Tuple
from psycopg2.extras import Json
from toolsy.core.database import get_db_connection_dict

logger = logging.getLogger(__name__)


class AdminRepository:
    """Repository for user_roles and admin_audit_log"""

    def has_role(self, user_id: str, role: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT 1
                FROM user_roles
                WHERE user_id = %s AND role = %s
            """, (user_id, role))
            return cursor.fetchone() is not None

        finally:
            cursor.close()
            conn.close()

    def log_action(
        self,
        action: str,
        table_name: str,
        record_id: Optional[str] = None,
        old_values: Optional[dict] = None,
        new_values: Optional[dict] = None,
        user_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> None:
        """Append one entry to the audit log"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO admin_audit_log (
                    action, table_name, record_id, old_values, new_values,
                    ip_address, user_agent, user_id
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            """, (
                action,
                table_name,
                record_id,
                Json(old_values) if old_values is not None else None,
                Json(new_values) if new_values is not None else None,
                ip_address,
                user_agent,
                user_id,
            ))
            conn.commit()

        finally:
            cursor.close()
            conn.close()

    def find_audit_log(
        self,
        table_name: Optional[str] = None,
        action: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[dict], int]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if table_name:
                conditions.append("table_name = %s")
                params.append(table_name)

            if action:
                conditions.append("action = %s")
                params.append(action)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM admin_audit_log
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT id, action, table_name, record_id, old_values, new_values,
                       ip_address, user_agent, user_id, created_at
                FROM admin_audit_log
                WHERE {where_clause}
                ORDER BY created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            entries = []
            for row in cursor.fetchall():
                entry = dict(row)
                entry['id'] = str(row['id'])
                entry['user_id'] = str(row['user_id']) if row.get('user_id') else None
                entry['created_at'] = row['created_at'].isoformat() if row.get('created_at') else None
                entries.append(entry)

            return entries, total

        finally:
            cursor.close()
            conn.close()

"""Filter rules stored in the filter_rules table."""

import logging
from typing import Any, Dict, List

import psycopg
from psycopg import Connection

from ..errors import RuleError
from ..filtering.rules import RULE_KINDS, FilterRule, RuleSets, RuleSource, default_rule_sets, parse_rule
from .connection import get_connection

logger = logging.getLogger(__name__)


class PostgresRuleSource(RuleSource):
    """
    Load rules from Postgres.

    Kinds with no valid enabled rows keep the built-in defaults; an
    unreachable database yields the full default set. Invalid rows are
    skipped and recorded in rule_errors.
    """

    def __init__(self, db_config: Dict[str, Any]) -> None:
        self.db_config = db_config
        self.rule_errors: List[RuleError] = []

    def load_rules(self) -> RuleSets:
        defaults = default_rule_sets()
        self.rule_errors = []
        try:
            with get_connection(self.db_config) as conn:
                rows = self._fetch_rows(conn)
        except psycopg.Error as e:
            logger.warning("Could not load rules from database, using built-in rules: %s", e)
            return defaults

        by_kind: Dict[str, List[FilterRule]] = {kind: [] for kind in RULE_KINDS}
        for row in rows:
            kind = row["pattern_type"]
            if kind not in by_kind:
                logger.warning("Ignoring rule %s with unknown type %s", row["id"], kind)
                continue
            entry = {field: row[field] for field in ("pattern", "is_regex", "rule_id", "description")}
            try:
                by_kind[kind].append(parse_rule(entry))
            except RuleError as e:
                logger.warning("Skipping %s rule %s: %s", kind, row["id"], e)
                self.rule_errors.append(e)

        for kind in RULE_KINDS:
            if not by_kind[kind]:
                logger.info("No %s rules in database, using built-in rules", kind)
                by_kind[kind] = getattr(defaults, kind)

        return RuleSets(**by_kind)

    def _fetch_rows(self, conn: Connection) -> List[Dict[str, Any]]:
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT id, pattern_type, rule_id, pattern, is_regex, description
                FROM filter_rules
                WHERE is_enabled = TRUE
                ORDER BY pattern_type, id
                """
            )
            return cur.fetchall()


def save_rules_to_db(conn: Connection, rule_sets: RuleSets) -> int:
    """
    Insert rules, skipping patterns already present for their kind.

    Returns:
        Number of rules inserted
    """
    inserted = 0
    with conn.cursor() as cur:
        for kind, rule in rule_sets.iter_rules():
            cur.execute(
                """
                INSERT INTO filter_rules (pattern_type, rule_id, pattern, is_regex, description)
                VALUES (%s, %s, %s, %s, %s)
                ON CONFLICT (pattern_type, pattern) DO NOTHING
                """,
                (kind, rule.rule_id, rule.pattern, rule.is_regex, rule.description),
            )
            inserted += cur.rowcount
    conn.commit()
    return inserted

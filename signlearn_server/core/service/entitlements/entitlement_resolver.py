"""Lesson and level access decisions derived from the purchase ledger."""
from typing import Iterable, Set

import logfire

from signlearn_server.core.models.payment_models import Identity, level_of
from signlearn_server.core.service.supabase_connectors.purchase_ledger import PurchaseLedger


class EntitlementResolver:
    """
    Answers whether an identity may open a level or a lesson.

    Rules, in order: admins may open everything; free levels are open to
    everyone; otherwise a successful purchase of any lesson in a level opens
    the whole level. No gateway calls are made here.
    """

    def __init__(self, ledger: PurchaseLedger, admin_emails: Iterable[str] = (),
                 free_levels: Iterable[str] = ("beginner",)):
        self.ledger = ledger
        self.admin_emails = frozenset(email.strip().lower() for email in admin_emails)
        self.free_levels = frozenset(level.lower() for level in free_levels)

    def is_admin(self, identity: Identity) -> bool:
        return identity.normalized_email in self.admin_emails

    def purchased_levels(self, identity: Identity) -> Set[str]:
        email = identity.normalized_email
        if not email:
            return set()
        return {record.level for record in self.ledger.list_by_email(email)}

    def has_level_access(self, identity: Identity, level: str) -> bool:
        level = level.lower()
        if self.is_admin(identity):
            return True
        if level in self.free_levels:
            return True
        has_access = level in self.purchased_levels(identity)
        logfire.debug(f"Level access for {level}: {has_access}")
        return has_access

    def has_lesson_access(self, identity: Identity, lesson_id: str) -> bool:
        level = level_of(lesson_id)
        if self.is_admin(identity):
            return True
        if level in self.free_levels:
            return True
        email = identity.normalized_email
        if not email:
            return False
        return any(
            record.lesson_id == lesson_id or record.level == level
            for record in self.ledger.list_by_email(email)
        )

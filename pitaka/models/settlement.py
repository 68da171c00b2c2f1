from enum import Enum


class SettlementMode(str, Enum):
    MARK_ONLY = "mark_only"            # flip the flag, no money moves
    AFFECT_ACCOUNT = "affect_account"  # record a transaction and move the balance

# Ledger core package
# IdentityLedger and the checkpoint helpers import the render package, which
# imports from here; import them from exoskeleton.core.ledger / .checkpoint.
from .errors import ErrorCode, ErrorCategory, LedgerError, InvalidOperation, TransferFailed
from .events import EventLog
from .models import Identity, IdentitySnapshot, LedgerState, Message, ModuleDescriptor
from .pricing import PricingCurve
from .reputation import ReputationEngine
from .tiers import Tier, TierEngine
from .modules import ModuleCatalog
from .balances import BalanceBook

__all__ = [
    "ErrorCode", "ErrorCategory", "LedgerError", "InvalidOperation", "TransferFailed",
    "EventLog",
    "Identity", "IdentitySnapshot", "LedgerState", "Message", "ModuleDescriptor",
    "PricingCurve",
    "ReputationEngine",
    "Tier", "TierEngine",
    "ModuleCatalog",
    "BalanceBook",
]

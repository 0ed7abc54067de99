from .calories import CalorieEstimate, parse_calorie_estimate
from .dedup import EventDeduplicator
from .dispatcher import ReplyDispatcher
from .errors import AuthenticationError, ClinicBotError, DispatchError, StorageError, UpstreamError
from .metrics import extract_metrics
from .models import ConversationTurn, InboundEvent, OrchestratorResult, parse_events, text_message
from .orchestrator import FALLBACK_REPLY, ConversationOrchestrator
from .pipeline import EventPipeline
from .routing import RoutingDecision, RoutingPolicy
from .settings import BotSettings
from .signature import compute_signature, ensure_valid_signature, verify_signature

__all__ = [
    "AuthenticationError",
    "BotSettings",
    "CalorieEstimate",
    "ClinicBotError",
    "ConversationOrchestrator",
    "ConversationTurn",
    "DispatchError",
    "EventDeduplicator",
    "EventPipeline",
    "FALLBACK_REPLY",
    "InboundEvent",
    "OrchestratorResult",
    "ReplyDispatcher",
    "RoutingDecision",
    "RoutingPolicy",
    "StorageError",
    "UpstreamError",
    "compute_signature",
    "ensure_valid_signature",
    "extract_metrics",
    "parse_calorie_estimate",
    "parse_events",
    "text_message",
    "verify_signature",
]

from super_assistant.conversation.intents import ClassifierResult, Intent, KeywordIntentClassifier
from super_assistant.conversation.slot_extractor import ExtractionResult, SlotKind, extract
from super_assistant.conversation.state_machine import (
    ConversationPhase,
    ConversationState,
    DialogueStateMachine,
    handle,
)

__all__ = [
    "ConversationPhase",
    "ConversationState",
    "DialogueStateMachine",
    "handle",
    "Intent",
    "ClassifierResult",
    "KeywordIntentClassifier",
    "SlotKind",
    "ExtractionResult",
    "extract",
]

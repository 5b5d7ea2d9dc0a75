"""Test actions and action containers."""

from .base import ACTIONS, ActionState, ChildAction, TestAction, action_model, parse_action, register_action
from .containers import (
    Conditional,
    Sequence,
    SequenceAfterSuite,
    SequenceBeforeSuite,
    SuiteSequence,
    TestActionContainer,
    evaluate_condition,
)
from .core import CreateVariablesAction, EchoAction
from .messaging import Extraction, MessagingAction, ReceiveMessageAction, SendMessageAction

__all__ = (
    'ACTIONS',
    'ActionState',
    'ChildAction',
    'Conditional',
    'CreateVariablesAction',
    'EchoAction',
    'Extraction',
    'MessagingAction',
    'ReceiveMessageAction',
    'SendMessageAction',
    'Sequence',
    'SequenceAfterSuite',
    'SequenceBeforeSuite',
    'SuiteSequence',
    'TestAction',
    'TestActionContainer',
    'action_model',
    'evaluate_condition',
    'parse_action',
    'register_action',
)

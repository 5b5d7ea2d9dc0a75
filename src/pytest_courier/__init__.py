"""Message-based integration testing engine for pytest.

The `pytest_courier` package executes test cases made of ordered actions
(send, receive, control-flow containers) against abstract messaging
endpoints. Message content is declared as templates and resolved against
a per-case runtime context.

Key features:
- runtime context with variables, pluggable functions and validation matchers;
- message builders for static, payload-template and scripted messages;
- direction and scope filtered data dictionaries;
- sequential action execution with actor-based skipping and
  single-wrap failure propagation;
- YAML-described test cases collected as pytest items.
"""

from logging import NullHandler, getLogger

getLogger(__name__).addHandler(NullHandler())

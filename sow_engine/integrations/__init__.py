"""sow_engine.integrations — External service gateway modules.

All outbound HTTP calls to third-party APIs go through a gateway in this
package, never via bare `requests` calls in services or blueprints.

Every call is:
  - Authenticated (credentials injected by the gateway)
  - Timed and logged
  - Translated into ExternalServiceError on failure, naming the step

Gateways never retry; retry policy belongs to the caller.

Current gateways:
  task_tracker_gateway.TaskTrackerGateway — Teamwork-style project/task REST API
"""

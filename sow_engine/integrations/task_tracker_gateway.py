"""
Task Tracker Integration Gateway.

All outbound HTTP calls to the external task-tracking system (Teamwork-style
REST API: companies → projects → milestones → task lists → tasks) go through
this class.

  - Basic auth: API token as username, "x" as password
  - Timeout: 30 s (configurable)
  - No retry and no compensation: a failed call raises ExternalServiceError
    naming the step, and whatever was created before it stays created

Testability: pass a mock `session` to TaskTrackerGateway() in tests instead of
letting it create a real requests.Session internally.
"""

from __future__ import annotations

import logging
import time
from datetime import date
from typing import Any

import requests

from sow_engine.core.exceptions import ExternalServiceError
from sow_engine.utils.helpers import parse_date

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 30


class GatewayResult:
    """Structured return value from a single gateway HTTP call.

    Attributes:
        ok:             True if the call succeeded (HTTP 2xx + no exception).
        status_code:    HTTP status code (None if network-level failure).
        data:           Parsed JSON response body, else {}.
        error:          Human-readable error message or None.
        duration_ms:    Round-trip latency in milliseconds.
    """

    def __init__(
        self,
        ok: bool,
        status_code: int | None,
        data: dict | None,
        error: str | None,
        duration_ms: int,
    ) -> None:
        self.ok = ok
        self.status_code = status_code
        self.data = data or {}
        self.error = error
        self.duration_ms = duration_ms


def format_tracker_date(value: Any) -> str | None:
    """Format a date or ISO date string as the tracker's YYYYMMDD."""
    parsed = value if isinstance(value, date) else parse_date(value)
    if parsed is None:
        return None
    return parsed.strftime("%Y%m%d")


def _first_id(data: dict, *keys: str) -> str | None:
    for key in keys:
        value = data.get(key)
        if value:
            return str(value)
    return None


class TaskTrackerGateway:
    """External task-tracker REST API gateway.

    Construct one per app from config (see ``from_config``) and inject it
    into the TemplateProjector. Tests pass a fake ``session``.
    """

    def __init__(
        self,
        site_url: str,
        api_token: str,
        session: requests.Session | None = None,
        timeout: int = _DEFAULT_TIMEOUT,
    ) -> None:
        self.site_url = (site_url or "").rstrip("/")
        self._api_token = api_token or ""
        self._session: requests.Session | None = session
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: dict, session: requests.Session | None = None) -> TaskTrackerGateway:
        return cls(
            site_url=config.get("TASK_TRACKER_SITE_URL", ""),
            api_token=config.get("TASK_TRACKER_API_TOKEN", ""),
            session=session,
            timeout=config.get("TASK_TRACKER_TIMEOUT", _DEFAULT_TIMEOUT),
        )

    # ── HTTP session ─────────────────────────────────────────────────────────

    @property
    def session(self) -> requests.Session:
        """Return (or lazily create) the requests.Session."""
        if self._session is None:
            self._session = requests.Session()
        return self._session

    @property
    def is_configured(self) -> bool:
        return bool(self.site_url and self._api_token)

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    # ── Core request dispatcher ───────────────────────────────────────────────

    def request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict | None = None,
        params: dict | None = None,
    ) -> GatewayResult:
        """Execute one authenticated request. Never raises; callers check .ok."""
        url = f"{self.site_url}{path}"
        kwargs: dict[str, Any] = {
            "headers": self._headers(),
            "auth": (self._api_token, "x"),
            "timeout": self.timeout,
        }
        if json_body is not None:
            kwargs["json"] = json_body
        if params:
            kwargs["params"] = params

        t0 = time.perf_counter()
        try:
            resp = self.session.request(method, url, **kwargs)
        except requests.Timeout:
            logger.warning("Task tracker request timed out %s %s", method, path)
            return GatewayResult(False, None, None, f"Request timed out after {self.timeout}s",
                                 int(self.timeout * 1000))
        except requests.RequestException as exc:
            logger.warning("Task tracker network error %s %s error=%s", method, path, exc)
            return GatewayResult(False, None, None, str(exc)[:500],
                                 int((time.perf_counter() - t0) * 1000))

        duration_ms = int((time.perf_counter() - t0) * 1000)
        if not resp.ok:
            logger.warning("Task tracker request failed %s %s status=%d", method, path, resp.status_code)
            return GatewayResult(False, resp.status_code, None,
                                 f"HTTP {resp.status_code}: {resp.text[:500]}", duration_ms)

        # Some endpoints answer 201 with an empty body and the id in a header
        content_type = resp.headers.get("content-type", "")
        data: dict = {}
        if resp.content and "json" in content_type:
            try:
                data = resp.json()
            except ValueError:
                data = {}
        if "id" not in data and resp.headers.get("id"):
            data["id"] = resp.headers["id"]
        logger.debug("Task tracker %s %s ok status=%d", method, path, resp.status_code,
                     extra={"duration_ms": duration_ms})
        return GatewayResult(True, resp.status_code, data, None, duration_ms)

    def _call(self, step: str, method: str, path: str, **kwargs) -> dict:
        result = self.request(method, path, **kwargs)
        if not result.ok:
            raise ExternalServiceError(step, result.error or "unknown error",
                                       context={"statusCode": result.status_code})
        return result.data

    # ── Companies ─────────────────────────────────────────────────────────────

    def find_company(self, name: str) -> dict | None:
        data = self._call("find_company", "GET", "/companies.json")
        for company in data.get("companies", []):
            if str(company.get("name", "")).lower() == name.lower():
                return {"id": str(company.get("id")), "name": company.get("name")}
        return None

    def find_or_create_company(self, name: str) -> dict:
        """Return ``{id, name, created}`` for the company called ``name``."""
        existing = self.find_company(name)
        if existing:
            return {**existing, "created": False}
        data = self._call("create_company", "POST", "/companies.json",
                          json_body={"company": {"name": name}})
        return {"id": _first_id(data, "id", "companyId"), "name": name, "created": True}

    # ── Projects ──────────────────────────────────────────────────────────────

    def create_project(
        self,
        name: str,
        *,
        description: str = "",
        company_id: str | None = None,
        start_date: Any = None,
        end_date: Any = None,
    ) -> dict:
        """Create a project; returns ``{id, url}``."""
        project: dict[str, Any] = {
            "name": name,
            "description": description,
            "use-tasks": True,
            "use-milestones": True,
        }
        if company_id:
            project["companyId"] = str(company_id)
        if start_date:
            project["startDate"] = format_tracker_date(start_date)
        if end_date:
            project["endDate"] = format_tracker_date(end_date)

        data = self._call("create_project", "POST", "/projects.json", json_body={"project": project})
        project_id = _first_id(data, "id", "projectId")
        if not project_id:
            raise ExternalServiceError("create_project", "response did not include a project id")
        return {"id": project_id, "url": f"{self.site_url}/app/projects/{project_id}"}

    # ── Milestones ────────────────────────────────────────────────────────────

    def create_milestone(
        self,
        project_id: str,
        title: str,
        *,
        description: str = "",
        deadline: Any = None,
    ) -> dict:
        milestone: dict[str, Any] = {"title": title, "description": description}
        if deadline:
            milestone["deadline"] = format_tracker_date(deadline)
        data = self._call("create_milestone", "POST", f"/projects/{project_id}/milestones.json",
                          json_body={"milestone": milestone})
        return {"id": _first_id(data, "milestoneId", "id")}

    # ── Task lists ────────────────────────────────────────────────────────────

    def create_task_list(
        self,
        project_id: str,
        name: str,
        *,
        description: str = "",
        milestone_id: str | None = None,
    ) -> dict:
        tasklist: dict[str, Any] = {"name": name, "description": description}
        if milestone_id:
            tasklist["milestone-id"] = str(milestone_id)
        data = self._call("create_task_list", "POST", f"/projects/{project_id}/tasklists.json",
                          json_body={"todo-list": tasklist})
        return {"id": _first_id(data, "TASKLISTID", "id")}

    # ── Tasks ─────────────────────────────────────────────────────────────────

    def create_task(
        self,
        task_list_id: str,
        content: str,
        *,
        description: str = "",
        start_date: Any = None,
        due_date: Any = None,
        priority: str = "medium",
    ) -> dict:
        task: dict[str, Any] = {"content": content, "description": description, "priority": priority}
        if start_date:
            task["start-date"] = format_tracker_date(start_date)
        if due_date:
            task["due-date"] = format_tracker_date(due_date)
        data = self._call("create_task", "POST", f"/tasklists/{task_list_id}/tasks.json",
                          json_body={"todo-item": task})
        return {"id": _first_id(data, "id")}

"""
Shared pytest fixtures for the SOW engine test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - fake_tracker: in-memory task tracker installed as the app gateway
    - make_assessment / make_proposal / make_section: ORM row factories
"""

import itertools

import pytest

from sow_engine import create_app
from sow_engine.core.exceptions import ExternalServiceError
from sow_engine.models import db as _db
from sow_engine.models.assessment import Assessment
from sow_engine.models.proposal import Proposal, ProposalSection


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Fake task tracker ────────────────────────────────────────────────────


class FakeTaskTracker:
    """Records every call; ``fail_on`` names a step that raises after ``fail_after`` successes."""

    is_configured = True

    def __init__(self, fail_on=None, fail_after=0):
        self.fail_on = fail_on
        self.fail_after = fail_after
        self.calls = []
        self._ids = itertools.count(100)

    def _record(self, step, **kwargs):
        done = sum(1 for c in self.calls if c[0] == step)
        if step == self.fail_on and done >= self.fail_after:
            raise ExternalServiceError(step, "HTTP 500: boom", context={"statusCode": 500})
        self.calls.append((step, kwargs))
        return str(next(self._ids))

    def steps(self, step):
        return [kwargs for name, kwargs in self.calls if name == step]

    def find_or_create_company(self, name):
        return {"id": self._record("find_or_create_company", name=name), "name": name, "created": True}

    def create_project(self, name, **kwargs):
        project_id = self._record("create_project", name=name, **kwargs)
        return {"id": project_id, "url": f"https://tracker.test/app/projects/{project_id}"}

    def create_milestone(self, project_id, title, **kwargs):
        return {"id": self._record("create_milestone", project_id=project_id, title=title, **kwargs)}

    def create_task_list(self, project_id, name, **kwargs):
        return {"id": self._record("create_task_list", project_id=project_id, name=name, **kwargs)}

    def create_task(self, task_list_id, content, **kwargs):
        return {"id": self._record("create_task", task_list_id=task_list_id, content=content, **kwargs)}


@pytest.fixture()
def fake_tracker(app):
    """Install a FakeTaskTracker as the app's gateway for one test."""
    original = app.extensions.get("task_tracker_gateway")
    tracker = FakeTaskTracker()
    app.extensions["task_tracker_gateway"] = tracker
    yield tracker
    app.extensions["task_tracker_gateway"] = original


# ── Row factories ────────────────────────────────────────────────────────


@pytest.fixture()
def make_assessment():
    def _make(customer_id="cust-1", assessment_type="gtm", processes=None):
        row = Assessment(
            customer_id=customer_id,
            assessment_type=assessment_type,
            processes=processes if processes is not None else [],
        )
        _db.session.add(row)
        _db.session.commit()
        return row
    return _make


@pytest.fixture()
def make_proposal():
    def _make(**overrides):
        fields = {
            "customer_id": "cust-1",
            "title": "Acme Statement of Work",
            "proposal_type": "embedded",
            "status": "draft",
            "linked_assessment_ids": [],
            "content": {"executiveSummary": "Summary"},
        }
        fields.update(overrides)
        row = Proposal(**fields)
        _db.session.add(row)
        _db.session.commit()
        return row
    return _make


@pytest.fixture()
def make_section():
    def _make(proposal, sort_order=0, **overrides):
        fields = {
            "proposal_id": proposal.id,
            "title": f"Section {sort_order}",
            "deliverables": [],
            "addressed_process_names": [],
            "sort_order": sort_order,
        }
        fields.update(overrides)
        row = ProposalSection(**fields)
        _db.session.add(row)
        _db.session.commit()
        return row
    return _make

"""
Tests for the obligation calendar generator
"""

import json
import sys
from datetime import date
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import config
import obligation_calendar
from activity_log import ListActivity
from errors import Forbidden, ValidationError
from models.database import Task
from obligation_calendar import (
    Obligation, BuildBuiltinCatalog, DueDate, NextMonth, FilterObligations,
    GenerateMonth, GenerateYear, SummarizeYear, RefreshCatalog
)
from auth import PrincipalFromUser

from conftest import AuthHeaders


def _Tasks(db_manager):
    session = db_manager.GetSession()
    try:
        return session.query(Task).order_by(Task.due_date.asc()).all()
    finally:
        session.close()


def test_next_month():
    """Test next month calculation across the year boundary"""
    assert NextMonth(date(2025, 3, 18)) == (2025, 4)
    assert NextMonth(date(2025, 12, 1)) == (2026, 1)


def test_due_date_is_clamped_to_month_length():
    """Test due day clamping"""
    assert DueDate(2025, 2, 31) == date(2025, 2, 28)
    assert DueDate(2024, 2, 31) == date(2024, 2, 29)
    assert DueDate(2025, 4, 15) == date(2025, 4, 15)

    with pytest.raises(ValueError):
        DueDate(2025, 4, 0)


def test_builtin_catalog_shape():
    """Test the built-in catalog months and sizes"""
    catalog = BuildBuiltinCatalog()

    assert sorted(catalog) == list(range(1, 13))
    assert len(catalog[2]) == 12
    assert len(catalog[1]) == 14  # monthly + quarterly
    assert all(o.due_day >= 1 for month in catalog.values() for o in month)


def test_filter_by_company_type_keeps_shared_obligations():
    """Test company type filtering"""
    selected = FilterObligations(BuildBuiltinCatalog()[2], company_type="simples_nacional")

    assert len(selected) == 8
    assert {o.company_type for o in selected} == {"all", "simples_nacional"}


def test_generate_month_creates_tasks_for_first_admin(db_manager, admin):
    """Test month generation with the default responsible"""
    principal = PrincipalFromUser(admin)

    result = GenerateMonth(db_manager, principal, 2025, 4)

    assert result.success
    assert result.tasks_created == 14
    assert result.responsible == "bootstrap@taxdesk.test"

    tasks = _Tasks(db_manager)
    assert len(tasks) == 14
    assert all(t.recurring and t.status == "pending" for t in tasks)
    # Quarterly obligations due on the 31st fall on April 30th
    assert max(t.due_date for t in tasks) == date(2025, 4, 30)

    assert ListActivity(db_manager)[0].action == "generate_calendar_month"


def test_generate_month_skips_existing_tasks(db_manager, admin, standard_user):
    """Test that regenerating a month skips existing tasks"""
    principal = PrincipalFromUser(admin)

    first = GenerateMonth(db_manager, principal, 2025, 2, responsible_email="bruno@taxdesk.test")
    second = GenerateMonth(db_manager, principal, 2025, 2, responsible_email="bruno@taxdesk.test")

    assert first.tasks_created == 12
    assert first.responsible == "bruno@taxdesk.test"
    assert second.success
    assert second.tasks_created == 0
    assert second.skipped == 12
    assert len(_Tasks(db_manager)) == 12


def test_generate_month_unknown_responsible(db_manager, admin):
    """Test month generation with an unknown responsible e-mail"""
    result = GenerateMonth(db_manager, PrincipalFromUser(admin), 2025, 2, responsible_email="ghost@taxdesk.test")

    assert not result.success
    assert "ghost@taxdesk.test" in result.error
    assert _Tasks(db_manager) == []


def test_generate_month_validation_and_authorization(db_manager, admin, standard_user):
    """Test year and month validation and the admin requirement"""
    with pytest.raises(ValidationError):
        GenerateMonth(db_manager, PrincipalFromUser(admin), 2019, 5)

    with pytest.raises(ValidationError):
        GenerateMonth(db_manager, PrincipalFromUser(admin), 2025, 13)

    with pytest.raises(Forbidden):
        GenerateMonth(db_manager, PrincipalFromUser(standard_user), 2025, 5)


def test_generate_year_isolates_failing_month(db_manager, admin):
    """Test that one failing month does not stop the year"""
    catalog = {month: [Obligation("DCTFWeb", 15)] for month in range(1, 13)}
    catalog[6] = [Obligation("Broken obligation", 0)]

    results = GenerateYear(db_manager, PrincipalFromUser(admin), 2025, catalog=catalog)
    summary = SummarizeYear(2025, results)

    assert summary["successes"] == 11
    assert summary["errors"] == 1
    assert summary["details"]["errors"][0]["month"] == 6
    assert summary["total_tasks_created"] == 11
    assert len(_Tasks(db_manager)) == 11

    assert ListActivity(db_manager)[0].action == "generate_calendar_year"


def test_catalog_file_replaces_builtin(tmp_path, monkeypatch):
    """Test loading a catalog file in place of the built-in one"""
    catalog_file = tmp_path / "catalog.json"
    catalog_file.write_text(json.dumps({
        "1": [{"title": "GIA", "due_day": 12, "category": "estadual"}]
    }), encoding="utf-8")

    monkeypatch.setattr(config, "OBLIGATION_CATALOG", str(catalog_file))
    try:
        summary = RefreshCatalog()
        assert summary["total_obligations"] == 1
        assert summary["source"] == str(catalog_file)
        assert obligation_calendar.GetCatalog()[1][0].title == "GIA"
        assert obligation_calendar.GetCatalog()[2] == []
    finally:
        monkeypatch.setattr(config, "OBLIGATION_CATALOG", "")
        RefreshCatalog()

    assert len(obligation_calendar.GetCatalog()[2]) == 12


def test_calendar_endpoints(client, admin, standard_user):
    """Test the calendar HTTP endpoints"""
    response = client.get("/api/agenda-obligations/obligations", headers=AuthHeaders(standard_user))
    assert response.status_code == 403

    response = client.get("/api/agenda-obligations/obligations?detailed=true", headers=AuthHeaders(admin))
    assert response.status_code == 200
    body = response.json()
    assert body["total_months"] == 12
    assert "company_type" in body["months"][0]["obligations"][0]

    response = client.post("/api/agenda-obligations/month", headers=AuthHeaders(admin),
                           json={"year": 2025, "month": 2, "filters": {"company_type": "simples_nacional"}})
    assert response.status_code == 200
    assert response.json()["tasks_created"] == 8

    response = client.post("/api/agenda-obligations/month", headers=AuthHeaders(admin),
                           json={"year": 2025, "month": 3, "responsible_email": "ghost@taxdesk.test"})
    assert response.status_code == 400
    assert "error" in response.json()
    assert response.json()["details"]["month"] == 3

    response = client.post("/api/agenda-obligations/year", headers=AuthHeaders(admin), json={"year": 1999})
    assert response.status_code == 400


@pytest.mark.parametrize("entries", [
    [{"title": "GIA", "due_day": 12, "vencimento": 3}],
    [{"title": "GIA", "due_day": "12"}],
    {"title": "GIA", "due_day": 12},
])
def test_malformed_catalog_file_is_rejected(tmp_path, monkeypatch, client, admin, entries):
    """Test that a malformed catalog raises ValueError, keeps the active catalog and renders a JSON error"""
    catalog_file = tmp_path / "catalog.json"
    catalog_file.write_text(json.dumps({"1": entries}), encoding="utf-8")

    monkeypatch.setattr(config, "OBLIGATION_CATALOG", str(catalog_file))
    try:
        with pytest.raises(ValueError):
            RefreshCatalog()
        assert len(obligation_calendar.GetCatalog()[2]) == 12

        response = client.get("/api/agenda-obligations/refresh", headers=AuthHeaders(admin))
        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/json")
        assert "error" in response.json()
    finally:
        monkeypatch.setattr(config, "OBLIGATION_CATALOG", "")
        RefreshCatalog()


def test_repeated_obligation_in_month_creates_one_task(db_manager, admin):
    """Test that an obligation listed twice in the same month yields a single task"""
    catalog = {month: [] for month in range(1, 13)}
    catalog[8] = [Obligation("DCTFWeb", 15), Obligation("DCTFWeb", 15)]

    result = GenerateMonth(db_manager, PrincipalFromUser(admin), 2025, 8, catalog=catalog)

    assert result.tasks_created == 1
    assert result.skipped == 1
    assert len(_Tasks(db_manager)) == 1

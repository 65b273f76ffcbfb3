"""
TaxDesk Server - Obligation Calendar

Expands the yearly calendar of recurring tax obligations into tasks.

The catalog maps month numbers (1-12) to the obligations due in that month.
A built-in catalog ships with the server; TAXDESK_OBLIGATION_CATALOG may
point to a JSON file of the same shape that replaces it:

    {"1": [{"title": "DCTFWeb", "due_day": 15, "notes": "...",
            "category": "federal", "company_type": "all",
            "source": "Receita Federal", "frequency": "monthly"}], ...}

Generation for a whole year runs month by month; a failing month is
reported in its own result and does not stop the others.
"""

import calendar
import json
import logging
from dataclasses import dataclass, field, asdict
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import config
from activity_log import RecordActivity
from errors import ValidationError
from models.database import Task
from models.infrastructure import Principal
from managers.database_manager import DatabaseManager
from policy import Action, Authorize
from task_service import NewTask

logger = logging.getLogger(__name__)


MIN_YEAR = 2020
MAX_YEAR = 2100


# ==================== Catalog ====================

@dataclass(frozen=True)
class Obligation:
    """One recurring tax filing duty"""
    title: str
    due_day: int
    notes: str = ""
    category: str = "federal"
    company_type: str = "all"  # 'all', 'simples_nacional', 'lucro_presumido', 'lucro_real'
    source: str = "Receita Federal"
    frequency: str = "monthly"


@dataclass
class MonthResult:
    """Outcome of generating one month"""
    month: int
    success: bool
    tasks_created: int = 0
    skipped: int = 0
    responsible: Optional[str] = None
    error: Optional[str] = None
    task_ids: List[str] = field(default_factory=list)

    def ToDict(self) -> dict:
        return asdict(self)


MONTHLY_OBLIGATIONS = [
    Obligation("ISS - Imposto Sobre Servicos", 10, "Municipal service tax on the previous month's invoices",
               category="municipal", source="Prefeitura"),
    Obligation("ICMS - Apuracao e Recolhimento", 10, "State VAT; due date varies by state",
               category="estadual", company_type="lucro_presumido", source="SEFAZ"),
    Obligation("DCTFWeb", 15, "Social security and withholding declaration for the previous month",
               category="previdenciaria"),
    Obligation("EFD-Reinf", 15, "Withholdings and other fiscal information", category="federal"),
    Obligation("eSocial - Eventos Periodicos", 15, "Payroll events for the previous month",
               category="trabalhista", source="eSocial"),
    Obligation("EFD-Contribuicoes", 15, "PIS/COFINS digital bookkeeping (second month after the period)",
               category="federal", company_type="lucro_real"),
    Obligation("DAS - Simples Nacional", 20, "Unified monthly payment for Simples Nacional companies",
               company_type="simples_nacional"),
    Obligation("FGTS Digital", 20, "Employee severance fund deposit", category="trabalhista",
               source="Ministerio do Trabalho"),
    Obligation("DARF - IRRF", 20, "Income tax withheld at source"),
    Obligation("DARF - Contribuicoes Previdenciarias", 20, "Employer social security contributions",
               category="previdenciaria"),
    Obligation("EFD ICMS/IPI", 20, "SPED fiscal file; due date varies by state",
               category="estadual", company_type="lucro_real", source="SEFAZ"),
    Obligation("DARF - PIS/COFINS", 25, "Monthly PIS and COFINS payment", company_type="lucro_presumido"),
]

QUARTERLY_OBLIGATIONS = [
    Obligation("DARF - IRPJ Trimestral", 31, "Quarterly corporate income tax (1st quota)",
               company_type="lucro_presumido", frequency="quarterly"),
    Obligation("DARF - CSLL Trimestral", 31, "Quarterly social contribution on net profit (1st quota)",
               company_type="lucro_presumido", frequency="quarterly"),
]
QUARTER_MONTHS = [1, 4, 7, 10]

ANNUAL_OBLIGATIONS = {
    3: [Obligation("DEFIS", 31, "Annual socioeconomic declaration of Simples Nacional companies",
                   category="declaracao", company_type="simples_nacional", frequency="annual")],
    5: [Obligation("ECD - Escrituracao Contabil Digital", 31, "Digital accounting bookkeeping",
                   category="declaracao", company_type="lucro_real", source="SPED", frequency="annual"),
        Obligation("DIRPF - Socios", 31, "Individual income tax returns of the partners",
                   category="declaracao", frequency="annual")],
    7: [Obligation("ECF - Escrituracao Contabil Fiscal", 31, "Corporate income tax bookkeeping",
                   category="declaracao", company_type="lucro_real", source="SPED", frequency="annual")],
}


def BuildBuiltinCatalog() -> Dict[int, List[Obligation]]:
    """
    Assemble the built-in catalog

    Returns:
        Dict[int, List[Obligation]]: Obligations per month, ordered by due day
    """
    catalog = {}
    for month in range(1, 13):
        obligations = list(MONTHLY_OBLIGATIONS)
        if month in QUARTER_MONTHS:
            obligations.extend(QUARTERLY_OBLIGATIONS)
        obligations.extend(ANNUAL_OBLIGATIONS.get(month, []))
        catalog[month] = sorted(obligations, key=lambda o: o.due_day)
    return catalog


def LoadCatalogFile(path: Path) -> Dict[int, List[Obligation]]:
    """
    Read a catalog from a JSON file

    Args:
        path: JSON file keyed by month number

    Returns:
        Dict[int, List[Obligation]]: Obligations per month

    Raises:
        ValueError: If the file content is not a valid catalog
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, dict):
        raise ValueError("Catalog must be an object keyed by month number")

    catalog = {month: [] for month in range(1, 13)}
    for key, entries in raw.items():
        try:
            month = int(key)
        except ValueError:
            raise ValueError(f"Invalid month in catalog: {key}")
        if month < 1 or month > 12:
            raise ValueError(f"Invalid month in catalog: {key}")
        if not isinstance(entries, list):
            raise ValueError(f"Obligations of month {key} must be a list")

        for entry in entries:
            if not isinstance(entry, dict):
                raise ValueError(f"Invalid obligation in month {key}: {entry!r}")
            try:
                obligation = Obligation(**entry)
            except TypeError as e:
                raise ValueError(f"Invalid obligation in month {key}: {str(e)}")
            if not isinstance(obligation.due_day, int) or isinstance(obligation.due_day, bool):
                raise ValueError(f"Due day of '{obligation.title}' must be an integer")
            if obligation.due_day < 1 or obligation.due_day > 31:
                raise ValueError(f"Invalid due day {obligation.due_day} for '{obligation.title}'")
            catalog[month].append(obligation)

    return catalog


# Active catalog and when it was loaded
_catalog: Dict[int, List[Obligation]] = BuildBuiltinCatalog()
_catalog_source = "builtin"
_catalog_loaded_at = datetime.now(timezone.utc)


def GetCatalog() -> Dict[int, List[Obligation]]:
    return _catalog


def RefreshCatalog() -> dict:
    """
    Reload the catalog from TAXDESK_OBLIGATION_CATALOG, or rebuild the built-in one

    Returns:
        dict: Load summary (source, loaded_at, total_obligations, months)

    Raises:
        ValueError, OSError: If the configured file cannot be read
    """
    global _catalog, _catalog_source, _catalog_loaded_at

    if config.OBLIGATION_CATALOG:
        path = Path(config.OBLIGATION_CATALOG)
        _catalog = LoadCatalogFile(path)
        _catalog_source = str(path)
    else:
        _catalog = BuildBuiltinCatalog()
        _catalog_source = "builtin"

    _catalog_loaded_at = datetime.now(timezone.utc)
    total = sum(len(obligations) for obligations in _catalog.values())
    logger.info(f"Obligation catalog loaded from {_catalog_source} ({total} obligations)")

    return {
        "source": _catalog_source,
        "loaded_at": _catalog_loaded_at,
        "total_obligations": total,
        "months": len(_catalog)
    }


def DescribeCatalog(detailed: bool = False, catalog: Optional[Dict[int, List[Obligation]]] = None) -> dict:
    """
    Summarize the catalog per month

    Args:
        detailed: Include category, company type, source and frequency
        catalog: Catalog to describe (defaults to the active one)

    Returns:
        dict: total_months, total_obligations, source, loaded_at and per-month lists
    """
    catalog = catalog if catalog is not None else _catalog
    months = []
    for month in sorted(catalog):
        obligations = []
        for obligation in catalog[month]:
            item = {"title": obligation.title, "due_day": obligation.due_day, "notes": obligation.notes}
            if detailed:
                item.update({
                    "category": obligation.category,
                    "company_type": obligation.company_type,
                    "source": obligation.source,
                    "frequency": obligation.frequency
                })
            obligations.append(item)
        months.append({
            "month": month,
            "month_name": calendar.month_name[month],
            "total_obligations": len(obligations),
            "obligations": obligations
        })

    return {
        "total_months": len(months),
        "total_obligations": sum(m["total_obligations"] for m in months),
        "source": _catalog_source,
        "loaded_at": _catalog_loaded_at,
        "months": months
    }


def FilterObligations(obligations: List[Obligation], category: Optional[str] = None,
                      company_type: Optional[str] = None) -> List[Obligation]:
    """
    Narrow obligations by category and company type
    Obligations for company type 'all' match every company type.
    """
    selected = []
    for obligation in obligations:
        if category and obligation.category != category:
            continue
        if company_type and obligation.company_type not in ("all", company_type):
            continue
        selected.append(obligation)
    return selected


# ==================== Dates ====================

def ValidateYear(year: Optional[int]) -> int:
    if not year or year < MIN_YEAR or year > MAX_YEAR:
        raise ValidationError(f"Year is required and must be between {MIN_YEAR} and {MAX_YEAR}")
    return year


def ValidateMonth(month: Optional[int]) -> int:
    if not month or month < 1 or month > 12:
        raise ValidationError("Month is required and must be between 1 and 12")
    return month


def DueDate(year: int, month: int, due_day: int) -> date:
    """
    Concrete due date, clamping the day to the month length

    Raises:
        ValueError: If due_day is not a positive day number
    """
    if due_day < 1:
        raise ValueError(f"Invalid due day: {due_day}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(due_day, last_day))


def NextMonth(today: Optional[date] = None) -> Tuple[int, int]:
    """
    The (year, month) following today's month
    """
    today = today or date.today()
    if today.month == 12:
        return today.year + 1, 1
    return today.year, today.month + 1


# ==================== Generation ====================

def _GenerateMonthTasks(
    db_manager: DatabaseManager,
    year: int,
    month: int,
    responsible_email: Optional[str],
    category: Optional[str],
    company_type: Optional[str],
    catalog: Dict[int, List[Obligation]]
) -> MonthResult:
    """Create the tasks of one month; failures are returned, not raised"""
    session = db_manager.GetSession()
    try:
        if responsible_email:
            responsible = db_manager.GetUserByEmail(session, responsible_email)
            if not responsible:
                return MonthResult(month=month, success=False,
                                   error=f"Responsible user not found: {responsible_email}")
        else:
            responsible = db_manager.GetFirstAdmin(session)
            if not responsible:
                return MonthResult(month=month, success=False, error="No administrator available as responsible")

        obligations = FilterObligations(catalog.get(month, []), category, company_type)
        result = MonthResult(month=month, success=True, responsible=responsible.email)
        added = set()

        for obligation in obligations:
            due = DueDate(year, month, obligation.due_day)

            exists = session.query(Task).filter(
                Task.title == obligation.title,
                Task.due_date == due
            ).first()
            if exists or (obligation.title, due) in added:
                result.skipped += 1
                continue

            task = NewTask(responsible, obligation.title, due, obligation.notes,
                           recurring=True, frequency=obligation.frequency)
            session.add(task)
            added.add((obligation.title, due))
            result.task_ids.append(task.task_id)
            result.tasks_created += 1

        session.commit()
        logger.info(f"Generated {result.tasks_created} obligation tasks for {month:02d}/{year} "
                    f"({result.skipped} already present)")
        return result

    except Exception as e:
        session.rollback()
        logger.error(f"Failed to generate obligation tasks for {month:02d}/{year}: {str(e)}")
        return MonthResult(month=month, success=False, error=str(e))
    finally:
        session.close()


def _RecordRun(db_manager: DatabaseManager, principal: Principal, action: str, run_id: str, summary: str) -> None:
    session = db_manager.GetSession()
    try:
        RecordActivity(session, principal, action, task_id=run_id, task_title=summary)
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def GenerateMonth(
    db_manager: DatabaseManager,
    principal: Principal,
    year: Optional[int],
    month: Optional[int],
    responsible_email: Optional[str] = None,
    category: Optional[str] = None,
    company_type: Optional[str] = None,
    catalog: Optional[Dict[int, List[Obligation]]] = None
) -> MonthResult:
    """
    Create the obligation tasks of one month

    Args:
        db_manager: DatabaseManager instance
        principal: Caller (admin)
        year: Calendar year
        month: Month 1-12
        responsible_email: Assignee e-mail; defaults to the oldest admin
        category: Only obligations of this category
        company_type: Only obligations applying to this company type
        catalog: Catalog override (defaults to the active one)

    Returns:
        MonthResult: Outcome; success=False carries the error

    Raises:
        Forbidden: If the caller is not an admin
        ValidationError: If year or month is out of range
    """
    Authorize(principal, Action.GENERATE_CALENDAR)
    year = ValidateYear(year)
    month = ValidateMonth(month)

    result = _GenerateMonthTasks(db_manager, year, month, responsible_email, category, company_type,
                                 catalog if catalog is not None else _catalog)

    if result.success:
        _RecordRun(db_manager, principal, "generate_calendar_month", f"agenda-{year}-{month:02d}",
                   f"Obligation calendar {month:02d}/{year} ({result.tasks_created} tasks)")

    return result


def GenerateYear(
    db_manager: DatabaseManager,
    principal: Principal,
    year: Optional[int],
    responsible_email: Optional[str] = None,
    category: Optional[str] = None,
    company_type: Optional[str] = None,
    catalog: Optional[Dict[int, List[Obligation]]] = None
) -> List[MonthResult]:
    """
    Create the obligation tasks of all twelve months
    Each month is generated in its own transaction.

    Args:
        db_manager: DatabaseManager instance
        principal: Caller (admin)
        year: Calendar year
        responsible_email: Assignee e-mail; defaults to the oldest admin
        category: Only obligations of this category
        company_type: Only obligations applying to this company type
        catalog: Catalog override (defaults to the active one)

    Returns:
        List[MonthResult]: One result per month

    Raises:
        Forbidden: If the caller is not an admin
        ValidationError: If the year is out of range
    """
    Authorize(principal, Action.GENERATE_CALENDAR)
    year = ValidateYear(year)
    catalog = catalog if catalog is not None else _catalog

    results = [
        _GenerateMonthTasks(db_manager, year, month, responsible_email, category, company_type, catalog)
        for month in range(1, 13)
    ]

    total = sum(r.tasks_created for r in results if r.success)
    succeeded = sum(1 for r in results if r.success)
    _RecordRun(db_manager, principal, "generate_calendar_year", f"agenda-{year}",
               f"Obligation calendar {year} ({total} tasks, {succeeded} months)")

    return results


def SummarizeYear(year: int, results: List[MonthResult]) -> dict:
    """Aggregate per-month results for the year endpoint"""
    successes = [r for r in results if r.success]
    failures = [r for r in results if not r.success]
    return {
        "year": year,
        "months_processed": len(results),
        "successes": len(successes),
        "errors": len(failures),
        "total_tasks_created": sum(r.tasks_created for r in successes),
        "details": {
            "successes": [
                {"month": r.month, "tasks_created": r.tasks_created, "skipped": r.skipped,
                 "responsible": r.responsible}
                for r in successes
            ],
            "errors": [{"month": r.month, "error": r.error} for r in failures]
        }
    }

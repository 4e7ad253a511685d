import json
import time
from datetime import date, datetime, timedelta, timezone

import httpx  # type: ignore[import-not-found]
import pytest  # type: ignore[import]

from mobile.app.api.schemas import CsReport, CsSlip
from mobile.app.core.ledger import (
    DURATION_MESSAGE,
    INCOMPLETE_FORM_MESSAGE,
    NO_TIME_IN_MESSAGE,
    TIME_ORDER_MESSAGE,
    HoursLedger,
    ServiceStatus,
    hours_between,
    sum_completed_hours,
    to_iso8601,
)
from mobile.app.errors import (
    DurationTooShort,
    IncompleteForm,
    NetworkOrServerError,
    NoTimeIn,
    TimeOutBeforeOrEqualTimeIn,
)

UTC = timezone.utc
SLIP = {
    "id": 7,
    "student": {
        "studentNumber": "2021-0001",
        "firstName": "Ana",
        "lastName": "Cruz",
        "section": {"sectionName": "BSIT-1A", "clusterHead": "Dr. Reyes"},
    },
    "areaOfCommServ": {"stationName": "Library"},
    "reasonOfCs": "Late submission",
    "dateOfCs": "2024-03-01T00:00:00Z",
    "natureOfWork": "Shelving",
    "status": "INCOMPLETE",
    "deduction": 1,
}


def _slip(**overrides) -> CsSlip:
    return CsSlip.model_validate({**SLIP, **overrides})


def _reports(*hours: float) -> list:
    return [CsReport(hoursCompleted=value) for value in hours]


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 3, 1, hour, minute, tzinfo=UTC)


def test_hours_between_truncates_to_whole_hours() -> None:
    assert hours_between(_at(9), _at(11, 45)) == 2
    assert hours_between(_at(9), _at(10)) == 1
    assert hours_between(_at(10), _at(9)) == 0


def test_deduction_counts_as_completed_time() -> None:
    assert sum_completed_hours(_reports(2, 3), 1) == 6
    assert sum_completed_hours([], 0) == 0


def test_select_record_derives_totals() -> None:
    ledger = HoursLedger()

    record = ledger.select_record(_slip(), _reports(2, 3), 40, 1)

    assert record.total_completed_hours == 6
    assert record.prior_completed_hours == 5
    assert record.remaining_hours == 34
    assert record.required_hours_available is True
    assert record.full_name == "Ana Cruz"
    assert record.section == "BSIT-1A"
    assert record.cluster_head == "Dr. Reyes"
    assert record.area_of_service == "Library"
    assert record.date_of_service == date(2024, 3, 1)
    assert record.status is ServiceStatus.INCOMPLETE
    assert ledger.draft is record


def test_unavailable_required_hours_are_flagged() -> None:
    record = HoursLedger().select_record(_slip(), [], None, 0)

    assert record.required_hours_available is False
    assert record.required_hours == 0


def test_missing_slip_date_defaults_to_today() -> None:
    ledger = HoursLedger(today=lambda: date(2024, 5, 6))

    record = ledger.select_record(_slip(dateOfCs=None), [], 10, 0)

    assert record.date_of_service == date(2024, 5, 6)


def test_set_time_out_requires_time_in() -> None:
    ledger = HoursLedger()
    ledger.select_record(_slip(), [], 40, 0)

    with pytest.raises(NoTimeIn) as excinfo:
        ledger.set_time_out(_at(10))
    assert str(excinfo.value) == NO_TIME_IN_MESSAGE


def test_set_time_out_must_follow_time_in() -> None:
    ledger = HoursLedger()
    ledger.set_time_in(_at(9))

    with pytest.raises(TimeOutBeforeOrEqualTimeIn) as excinfo:
        ledger.set_time_out(_at(9))
    assert str(excinfo.value) == TIME_ORDER_MESSAGE

    with pytest.raises(TimeOutBeforeOrEqualTimeIn):
        ledger.set_time_out(_at(8))
    assert ledger.draft.time_out is None


def test_set_time_out_enforces_minimum_duration() -> None:
    ledger = HoursLedger()
    ledger.set_time_in(_at(9))

    with pytest.raises(DurationTooShort) as excinfo:
        ledger.set_time_out(_at(9, 59))
    assert str(excinfo.value) == DURATION_MESSAGE

    ledger.set_time_out(_at(10))
    assert ledger.draft.time_out == _at(10)


def test_changing_time_in_clears_time_out() -> None:
    ledger = HoursLedger()
    ledger.set_time_in(_at(9))
    ledger.set_time_out(_at(12))

    ledger.set_time_in(_at(10))

    assert ledger.draft.time_in == _at(10)
    assert ledger.draft.time_out is None


def test_update_rejects_service_times() -> None:
    ledger = HoursLedger()

    with pytest.raises(ValueError):
        ledger.update(time_in=_at(9))

    record = ledger.update(status="complete", remarks="ok")
    assert record.status is ServiceStatus.COMPLETE
    assert record.remarks == "ok"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("COMPLETE", ServiceStatus.COMPLETE),
        ("incomplete", ServiceStatus.INCOMPLETE),
        (" Complete ", ServiceStatus.COMPLETE),
        ("", ServiceStatus.UNSET),
        (None, ServiceStatus.UNSET),
        ("pending", ServiceStatus.UNSET),
    ],
)
def test_service_status_parse(raw, expected) -> None:
    assert ServiceStatus.parse(raw) is expected


def test_to_iso8601_is_utc_with_milliseconds() -> None:
    assert to_iso8601(_at(9, 30)) == "2024-03-01T09:30:00.000Z"
    plus_eight = timezone(timedelta(hours=8))
    assert to_iso8601(datetime(2024, 3, 1, 9, 0, tzinfo=plus_eight)) == "2024-03-01T01:00:00.000Z"
    assert to_iso8601(date(2024, 3, 1)).endswith(".000Z")


def test_build_payload_from_complete_draft() -> None:
    ledger = HoursLedger()
    ledger.select_record(_slip(), [], 40, 0)
    ledger.set_time_in(_at(9))
    ledger.set_time_out(_at(11, 45))
    ledger.update(status=ServiceStatus.COMPLETE, remarks="Good work")

    payload = ledger.build_payload()

    assert payload.timeIn == "2024-03-01T09:00:00.000Z"
    assert payload.timeOut == "2024-03-01T11:45:00.000Z"
    assert payload.hoursCompleted == 2
    assert payload.status == "complete"
    assert payload.natureOfWork == "Shelving"
    assert payload.remarks == "Good work"


@pytest.mark.parametrize(
    "change",
    [
        {"nature_of_work": "   "},
        {"status": ServiceStatus.UNSET},
    ],
)
def test_build_payload_requires_every_field(change) -> None:
    ledger = HoursLedger()
    ledger.select_record(_slip(), [], 40, 0)
    ledger.set_time_in(_at(9))
    ledger.set_time_out(_at(11))
    ledger.update(status="complete")
    ledger.update(**change)

    with pytest.raises(IncompleteForm) as excinfo:
        ledger.build_payload()
    assert str(excinfo.value) == INCOMPLETE_FORM_MESSAGE


@pytest.mark.asyncio
async def test_incomplete_draft_never_reaches_the_network(backend) -> None:
    api, calls = backend()
    ledger = HoursLedger()
    ledger.select_record(_slip(), [], 40, 0)
    ledger.set_time_in(_at(9))

    with pytest.raises(IncompleteForm):
        await ledger.submit(api, "tok")

    assert calls == []


@pytest.mark.asyncio
async def test_submit_posts_report_and_discards_draft(backend) -> None:
    bodies = []

    def add(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"id": 1})

    api, calls = backend({("POST", "/csreport/addCsReportForSlip/7"): add})
    ledger = HoursLedger()
    ledger.select_record(_slip(), _reports(2, 3), 40, 1)
    ledger.set_time_in(_at(9))
    ledger.set_time_out(_at(11, 45))
    ledger.update(status="complete")

    payload = await ledger.submit(api, "tok")

    assert calls == [("POST", "/csreport/addCsReportForSlip/7")]
    assert bodies[0]["hoursCompleted"] == 2 == payload.hoursCompleted
    assert bodies[0]["status"] == "complete"
    assert ledger.draft.slip_id is None


@pytest.mark.asyncio
async def test_failed_submit_keeps_draft_for_retry(backend) -> None:
    api, calls = backend({("POST", "/csreport/addCsReportForSlip/7"): httpx.Response(500)})
    ledger = HoursLedger()
    ledger.select_record(_slip(), [], 40, 0)
    ledger.set_time_in(_at(9))
    ledger.set_time_out(_at(11))
    ledger.update(status="incomplete")

    with pytest.raises(NetworkOrServerError):
        await ledger.submit(api, "tok")

    # single attempt, no automatic retry
    assert len(calls) == 1
    assert ledger.draft.slip_id == 7
    assert ledger.draft.time_out == _at(11)


@pytest.mark.asyncio
async def test_unset_status_is_rejected_without_http(backend) -> None:
    api, calls = backend({("POST", "/csreport/addCsReportForSlip/7"): httpx.Response(200)})
    ledger = HoursLedger()
    ledger.select_record(_slip(status=None), [], 40, 0)
    ledger.set_time_in(_at(9))
    ledger.set_time_out(_at(11))

    assert ledger.draft.status is ServiceStatus.UNSET
    with pytest.raises(IncompleteForm):
        await ledger.submit(api, "tok")
    assert len(calls) == 0


@pytest.fixture
def manila_local_time(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is unavailable on this platform")
    monkeypatch.setenv("TZ", "PHT-8")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def test_date_only_slip_keeps_its_day_outside_utc(manila_local_time) -> None:
    # naive times still follow the local zone
    assert to_iso8601(datetime(2024, 5, 1, 9, 0)) == "2024-05-01T01:00:00.000Z"

    ledger = HoursLedger()
    ledger.select_record(_slip(dateOfCs="2024-05-01"), [], 40, 0)
    ledger.set_time_in(datetime(2024, 5, 1, 9, 0))
    ledger.set_time_out(datetime(2024, 5, 1, 11, 0))
    ledger.update(status="complete")

    payload = ledger.build_payload()

    assert payload.dateOfCs == "2024-05-01T00:00:00.000Z"
    assert payload.timeIn == "2024-05-01T01:00:00.000Z"


def test_offset_slip_date_uses_its_utc_day() -> None:
    record = HoursLedger().select_record(_slip(dateOfCs="2024-05-01T02:00:00+08:00"), [], 40, 0)

    assert record.date_of_service == date(2024, 4, 30)

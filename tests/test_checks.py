"""
Integrity Check Tests
=====================

Each check is pure: snapshot + config + now -> findings. These tests call
the checks directly, without a repository.
"""

from datetime import timedelta

import pytest

from aerotrace.config import DetectionConfig
from aerotrace.contracts.base import ExceptionType, Severity
from aerotrace.contracts.evidence import (
    ComponentIdentity, CounterRate, CounterRegression, DocumentationGap,
    DoubleInstall, MissingBirthCertificate, OutOfOrderEvents, StaleDraftDocument,
)
from aerotrace.contracts.records import Document, Facility, GeneratedDocument
from aerotrace.detection.checks import (
    ALL_CHECKS,
    check_cycle_counts,
    check_date_inconsistency,
    check_documentation_gaps,
    check_facility_certificates,
    check_hour_counts,
    check_missing_birth_certificate,
    check_missing_release_certificate,
    check_unsigned_documents,
    format_count,
    format_date,
    run_checks,
)

from tests.fixtures import (
    AIRLINE, BIRTH_CERTIFICATE, MRO, MRO_UNCERTIFIED, NOW, OEM,
    clean_snapshot, day, make_event, make_snapshot,
)

CONFIG = DetectionConfig()


def run(check, snapshot, now=NOW):
    return check(snapshot, CONFIG, now)


class TestCleanHistory:

    def test_clean_history_has_no_findings(self):
        assert run_checks(clean_snapshot(), CONFIG, NOW) == []

    def test_registry_holds_eight_checks(self):
        assert len(ALL_CHECKS) == 8
        assert len(set(ALL_CHECKS)) == 8


class TestCounterMonotonicity:

    def test_cycle_decrease_is_critical(self):
        """Cycles [100, 90] in date order -> one critical finding on those two events."""
        snapshot = make_snapshot([
            make_event("e1", "install", day(0), AIRLINE, cycles=100),
            make_event("e2", "remove", day(5), AIRLINE, cycles=90),
        ])

        issues = run(check_cycle_counts, snapshot)

        assert len(issues) == 1
        issue = issues[0]
        assert issue.exception_type == ExceptionType.CYCLE_COUNT_DISCREPANCY
        assert issue.severity == Severity.CRITICAL
        assert isinstance(issue.evidence, CounterRegression)
        assert issue.evidence.earlier.event_id == "e1"
        assert issue.evidence.later.event_id == "e2"
        assert issue.evidence.earlier.value == 100
        assert issue.evidence.later.value == 90
        assert issue.evidence.delta == -10

    def test_hour_decrease_is_critical(self):
        snapshot = make_snapshot([
            make_event("e1", "install", day(0), AIRLINE, hours=5000),
            make_event("e2", "remove", day(30), AIRLINE, hours=4200),
        ])

        issues = run(check_hour_counts, snapshot)

        assert len(issues) == 1
        assert issues[0].exception_type == ExceptionType.HOUR_COUNT_DISCREPANCY
        assert issues[0].severity == Severity.CRITICAL
        assert issues[0].evidence.counter == "hours"

    def test_events_without_counter_are_skipped(self):
        """A missing counter is no data, never zero."""
        snapshot = make_snapshot([
            make_event("e1", "install", day(0), AIRLINE, cycles=100),
            make_event("e2", "detailed_inspection", day(5), AIRLINE),
            make_event("e3", "remove", day(10), AIRLINE, cycles=150),
        ])

        assert run(check_cycle_counts, snapshot) == []

    def test_comparison_spans_gaps_in_counter_data(self):
        snapshot = make_snapshot([
            make_event("e1", "install", day(0), AIRLINE, cycles=100),
            make_event("e2", "detailed_inspection", day(5), AIRLINE),
            make_event("e3", "remove", day(10), AIRLINE, cycles=50),
        ])

        issues = run(check_cycle_counts, snapshot)

        assert len(issues) == 1
        assert issues[0].evidence.earlier.event_id == "e1"
        assert issues[0].evidence.later.event_id == "e3"

    def test_description_uses_thousands_separators(self):
        snapshot = make_snapshot([
            make_event("e1", "install", day(0), AIRLINE, cycles=12500),
            make_event("e2", "remove", day(5), AIRLINE, cycles=11000),
        ])

        issue = run(check_cycle_counts, snapshot)[0]

        assert "12,500" in issue.description
        assert "11,000" in issue.description


class TestCounterRate:

    def test_fifty_cycles_per_day_is_a_warning(self):
        snapshot = make_snapshot([
            make_event("e1", "install", day(0), AIRLINE, cycles=1000),
            make_event("e2", "remove", day(10), AIRLINE, cycles=1500),
        ])

        issues = run(check_cycle_counts, snapshot)

        assert len(issues) == 1
        assert issues[0].severity == Severity.WARNING
        assert isinstance(issues[0].evidence, CounterRate)
        assert issues[0].evidence.rate_per_day == 50.0
        assert issues[0].evidence.days_between == 10

    def test_ten_cycles_per_day_is_fine(self):
        snapshot = make_snapshot([
            make_event("e1", "install", day(0), AIRLINE, cycles=1000),
            make_event("e2", "remove", day(10), AIRLINE, cycles=1100),
        ])

        assert run(check_cycle_counts, snapshot) == []

    def test_rate_is_rounded_to_one_decimal(self):
        snapshot = make_snapshot([
            make_event("e1", "install", day(0), AIRLINE, hours=0),
            make_event("e2", "remove", day(3), AIRLINE, hours=100),
        ])

        issues = run(check_hour_counts, snapshot)

        assert len(issues) == 1
        assert issues[0].evidence.rate_per_day == 33.3

    def test_same_day_increase_is_not_rate_checked(self):
        snapshot = make_snapshot([
            make_event("e1", "remove", day(0), AIRLINE, cycles=100),
            make_event("e2", "receiving_inspection", day(0.2), MRO, cycles=900),
        ])

        assert run(check_cycle_counts, snapshot) == []

    def test_hours_threshold_is_eighteen_per_day(self):
        at_limit = make_snapshot([
            make_event("e1", "install", day(0), AIRLINE, hours=0),
            make_event("e2", "remove", day(10), AIRLINE, hours=180),
        ])
        over_limit = make_snapshot([
            make_event("e1", "install", day(0), AIRLINE, hours=0),
            make_event("e2", "remove", day(10), AIRLINE, hours=181),
        ])

        assert run(check_hour_counts, at_limit) == []
        assert len(run(check_hour_counts, over_limit)) == 1


class TestDocumentationGaps:

    def test_gap_after_install_is_never_flagged(self):
        snapshot = make_snapshot([
            make_event("e1", "install", day(0), AIRLINE),
            make_event("e2", "detailed_inspection", day(400), AIRLINE),
        ])

        assert run(check_documentation_gaps, snapshot) == []

    def test_long_gap_after_remove_is_critical(self):
        snapshot = make_snapshot([
            make_event("e1", "remove", day(0), AIRLINE),
            make_event("e2", "receiving_inspection", day(400), MRO),
        ])

        issues = run(check_documentation_gaps, snapshot)

        assert len(issues) == 1
        issue = issues[0]
        assert issue.exception_type == ExceptionType.DOCUMENTATION_GAP
        assert issue.severity == Severity.CRITICAL
        assert isinstance(issue.evidence, DocumentationGap)
        assert issue.evidence.gap_days == 400
        assert issue.evidence.gap_months == 13
        assert issue.evidence.before.event_id == "e1"
        assert issue.evidence.after.event_id == "e2"
        assert issue.evidence.before.facility == AIRLINE.name

    def test_short_custody_gap_is_a_warning(self):
        snapshot = make_snapshot([
            make_event("e1", "remove", day(0), AIRLINE),
            make_event("e2", "receiving_inspection", day(45), MRO),
        ])

        issues = run(check_documentation_gaps, snapshot)

        assert len(issues) == 1
        assert issues[0].severity == Severity.WARNING
        assert issues[0].evidence.gap_months == 2
        assert issues[0].title == "Documentation Gap - 2 Months"

    def test_custody_threshold_is_exclusive(self):
        snapshot = make_snapshot([
            make_event("e1", "remove", day(0), AIRLINE),
            make_event("e2", "receiving_inspection", day(30), MRO),
        ])

        assert run(check_documentation_gaps, snapshot) == []

    def test_supply_chain_allows_warehousing(self):
        within = make_snapshot([
            make_event("e1", "manufacture", day(0), OEM),
            make_event("e2", "install", day(440), AIRLINE),
        ])
        beyond = make_snapshot([
            make_event("e1", "transfer", day(0), OEM),
            make_event("e2", "receiving_inspection", day(460), MRO),
        ])

        assert run(check_documentation_gaps, within) == []
        issues = run(check_documentation_gaps, beyond)
        assert len(issues) == 1
        assert issues[0].severity == Severity.CRITICAL

    def test_gap_after_shop_work_is_not_classified(self):
        """Repair is neither in-service nor off-aircraft."""
        snapshot = make_snapshot([
            make_event("e1", "repair", day(0), MRO),
            make_event("e2", "release_to_service", day(300), MRO),
        ])

        assert run(check_documentation_gaps, snapshot) == []


class TestMissingReleaseCertificate:

    def test_release_without_any_certificate_is_flagged(self):
        snapshot = make_snapshot(
            [make_event("e1", "release_to_service", day(0), MRO)],
            documents=[BIRTH_CERTIFICATE],
        )

        issues = run(check_missing_release_certificate, snapshot)

        assert len(issues) == 1
        assert issues[0].exception_type == ExceptionType.MISSING_RELEASE_CERTIFICATE
        assert issues[0].severity == Severity.WARNING
        assert issues[0].evidence.event.event_id == "e1"

    def test_generated_certificate_on_the_event_satisfies_it(self):
        generated = GeneratedDocument(document_id="g1", doc_type="8130-3", created_at=day(0))
        snapshot = make_snapshot(
            [make_event("e1", "release_to_service", day(0), MRO, generated_docs=[generated])],
            documents=[BIRTH_CERTIFICATE],
        )

        assert run(check_missing_release_certificate, snapshot) == []

    @pytest.mark.parametrize("doc_type", ["8130", "8130-3"])
    def test_uploaded_certificate_satisfies_it(self, doc_type):
        snapshot = make_snapshot(
            [make_event("e1", "release_to_service", day(0), MRO)],
            documents=[Document(document_id="d1", doc_type=doc_type)],
        )

        assert run(check_missing_release_certificate, snapshot) == []

    @pytest.mark.parametrize("event_type", ["repair", "reassembly", "final_inspection"])
    def test_only_release_to_service_is_checked(self, event_type):
        """
        Shop events that usually precede a release are NOT checked, even
        with no certificate anywhere. Pinned so a change here is deliberate.
        """
        snapshot = make_snapshot(
            [make_event("e1", event_type, day(0), MRO)],
            documents=[BIRTH_CERTIFICATE],
        )

        assert run(check_missing_release_certificate, snapshot) == []


class TestMissingBirthCertificate:

    def test_two_independent_findings(self):
        snapshot = make_snapshot(
            [make_event("e1", "install", day(0), AIRLINE)],
            documents=[Document(document_id="d2", doc_type="work_order"),
                       Document(document_id="d1", doc_type="8130-3")],
        )

        issues = run(check_missing_birth_certificate, snapshot)

        assert len(issues) == 2
        assert all(i.exception_type == ExceptionType.MISSING_BIRTH_CERTIFICATE for i in issues)
        assert all(i.severity == Severity.WARNING for i in issues)
        kinds = {type(i.evidence) for i in issues}
        assert kinds == {ComponentIdentity, MissingBirthCertificate}
        doc_evidence = next(i.evidence for i in issues if isinstance(i.evidence, MissingBirthCertificate))
        assert doc_evidence.document_types == ("8130-3", "work_order")

    def test_manufacture_event_without_document(self):
        snapshot = make_snapshot(
            [make_event("e1", "manufacture", day(0), OEM)],
            documents=[],
        )

        issues = run(check_missing_birth_certificate, snapshot)

        assert len(issues) == 1
        assert isinstance(issues[0].evidence, MissingBirthCertificate)


class TestDateInconsistency:

    def test_out_of_order_events_are_critical(self):
        snapshot = make_snapshot([
            make_event("e1", "remove", day(10), AIRLINE),
            make_event("e2", "receiving_inspection", day(5), MRO),
        ])

        issues = run(check_date_inconsistency, snapshot)

        assert len(issues) == 1
        assert issues[0].severity == Severity.CRITICAL
        assert isinstance(issues[0].evidence, OutOfOrderEvents)
        assert issues[0].evidence.earlier.event_id == "e1"
        assert issues[0].evidence.later.event_id == "e2"

    @pytest.mark.parametrize("days_apart", [1, 30, 3650])
    def test_double_install_is_critical_regardless_of_elapsed_time(self, days_apart):
        snapshot = make_snapshot([
            make_event("e1", "install", day(0), AIRLINE),
            make_event("e2", "install", day(days_apart), AIRLINE),
        ])

        issues = run(check_date_inconsistency, snapshot)

        assert len(issues) == 1
        assert issues[0].exception_type == ExceptionType.DATE_INCONSISTENCY
        assert issues[0].severity == Severity.CRITICAL
        assert isinstance(issues[0].evidence, DoubleInstall)
        assert issues[0].evidence.first_install.event_id == "e1"
        assert issues[0].evidence.second_install.event_id == "e2"

    def test_remove_between_installs_is_fine(self):
        snapshot = make_snapshot([
            make_event("e1", "install", day(0), AIRLINE),
            make_event("e2", "remove", day(100), AIRLINE),
            make_event("e3", "install", day(200), AIRLINE),
        ])

        assert run(check_date_inconsistency, snapshot) == []

    def test_three_installs_give_two_findings(self):
        snapshot = make_snapshot([
            make_event("e1", "install", day(0), AIRLINE),
            make_event("e2", "install", day(10), AIRLINE),
            make_event("e3", "install", day(20), AIRLINE),
        ])

        assert len(run(check_date_inconsistency, snapshot)) == 2


class TestUnsignedDocuments:

    def _snapshot(self, created_at, status="draft"):
        doc = GeneratedDocument(document_id="g1", doc_type="8130-3", created_at=created_at, status=status)
        return make_snapshot([make_event("e1", "repair", day(0), MRO, generated_docs=[doc])])

    def test_stale_draft_is_info(self):
        snapshot = self._snapshot(NOW - timedelta(days=31))

        issues = run(check_unsigned_documents, snapshot)

        assert len(issues) == 1
        assert issues[0].severity == Severity.INFO
        assert issues[0].exception_type == ExceptionType.UNSIGNED_DOCUMENT
        assert isinstance(issues[0].evidence, StaleDraftDocument)
        assert issues[0].evidence.document_id == "g1"

    def test_recent_draft_is_fine(self):
        assert run(check_unsigned_documents, self._snapshot(NOW - timedelta(days=29))) == []

    def test_approved_document_is_fine(self):
        snapshot = self._snapshot(NOW - timedelta(days=400), status="approved")
        assert run(check_unsigned_documents, snapshot) == []

    def test_staleness_depends_on_injected_now(self):
        snapshot = self._snapshot(NOW - timedelta(days=10))

        assert run(check_unsigned_documents, snapshot, now=NOW) == []
        assert len(run(check_unsigned_documents, snapshot, now=NOW + timedelta(days=25))) == 1


class TestFacilityCertificates:

    def test_maintenance_at_uncertified_mro_is_flagged(self):
        snapshot = make_snapshot([make_event("e1", "repair", day(0), MRO_UNCERTIFIED)])

        issues = run(check_facility_certificates, snapshot)

        assert len(issues) == 1
        assert issues[0].severity == Severity.WARNING
        assert issues[0].evidence.facility_type == "mro"

    def test_non_mro_facility_is_not_checked(self):
        uncertified_oem = Facility(name="Some OEM", facility_type="oem")
        snapshot = make_snapshot([make_event("e1", "repair", day(0), uncertified_oem)])

        assert run(check_facility_certificates, snapshot) == []

    def test_non_maintenance_event_is_not_checked(self):
        snapshot = make_snapshot([make_event("e1", "install", day(0), MRO_UNCERTIFIED)])

        assert run(check_facility_certificates, snapshot) == []


class TestFormatting:

    def test_format_date(self):
        assert format_date(day(0)) == "Jan 1, 2020"
        assert format_date(day(65)) == "Mar 6, 2020"

    def test_format_count(self):
        assert format_count(1500.0) == "1,500"
        assert format_count(42) == "42"
        assert format_count(1234.5) == "1,234.5"

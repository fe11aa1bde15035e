"""
Unit Tests — Severity Classification & Ranking
===============================================
Label table, CVSS-like score bands (including band edges), fallback to
WARNING, and stable severity ordering.
"""
import pytest

from shieldscan.models.finding import Finding, ScanCategory
from shieldscan.models.report_bundle import ReportBundle
from shieldscan.models.scan_report import ScanReport
from shieldscan.models.severity import UNRANKED_ORDINAL, Severity
from shieldscan.parser.ranking import (
    rank_all,
    severity_rank,
    sort_bundle,
    sort_findings,
    top_findings,
)
from shieldscan.parser.severity import classify, classify_score


def _finding(title, severity, category=ScanCategory.SAST):
    return Finding(category=category, title=title, severity=severity)


# ===================================================================
# Label table
# ===================================================================
class TestLabelClassification:

    @pytest.mark.parametrize("label", ["critical", "HIGH", "Error", " error "])
    def test_error_labels(self, label):
        assert classify(label) == Severity.ERROR

    @pytest.mark.parametrize("label", ["medium", "MODERATE", "warning"])
    def test_warning_labels(self, label):
        assert classify(label) == Severity.WARNING

    @pytest.mark.parametrize("label", ["low", "INFO"])
    def test_info_labels(self, label):
        assert classify(label) == Severity.INFO

    def test_unknown_label_defaults_to_warning(self):
        assert classify("spicy") == Severity.WARNING

    def test_none_defaults_to_warning(self):
        assert classify(None) == Severity.WARNING

    def test_existing_severity_passes_through(self):
        assert classify(Severity.INFO) == Severity.INFO


# ===================================================================
# Score bands
# ===================================================================
class TestScoreBands:

    @pytest.mark.parametrize("score, expected", [
        (10.0, Severity.ERROR),
        (9.8, Severity.ERROR),
        (7.0, Severity.ERROR),
        (6.99, Severity.WARNING),
        (4.0, Severity.WARNING),
        (3.99, Severity.INFO),
        (0.1, Severity.INFO),
    ])
    def test_band_edges(self, score, expected):
        assert classify_score(score) == expected

    @pytest.mark.parametrize("score", [0, 0.05, -1, 10.1, 42])
    def test_out_of_band_scores_are_warning(self, score):
        assert classify(score) == Severity.WARNING

    def test_numeric_strings(self):
        assert classify("7.5") == Severity.ERROR
        assert classify("5.3") == Severity.WARNING
        assert classify("2") == Severity.INFO

    def test_gap_values_land_in_a_band(self):
        assert classify(6.95) == Severity.WARNING
        assert classify(3.95) == Severity.INFO

    def test_booleans_are_not_scores(self):
        assert classify(True) == Severity.WARNING

    def test_finding_model_uses_classifier(self):
        assert _finding("x", "HIGH").severity == Severity.ERROR
        assert _finding("x", 8.1).severity == Severity.ERROR
        assert _finding("x", None).severity == Severity.WARNING


# ===================================================================
# Ranking
# ===================================================================
class TestRanking:

    def test_severity_rank_values(self):
        assert severity_rank(Severity.ERROR) == 0
        assert severity_rank("warning") == 1
        assert severity_rank("INFO") == 2
        assert severity_rank("nonsense") == UNRANKED_ORDINAL
        assert severity_rank(None) == UNRANKED_ORDINAL

    def test_sort_is_monotonic(self):
        findings = [
            _finding("a", "INFO"),
            _finding("b", "ERROR"),
            _finding("c", "WARNING"),
            _finding("d", "ERROR"),
        ]
        ranks = [severity_rank(f.severity) for f in sort_findings(findings)]
        assert ranks == sorted(ranks)

    def test_sort_is_stable(self):
        findings = [
            _finding("w1", "WARNING"),
            _finding("e1", "ERROR"),
            _finding("w2", "WARNING"),
            _finding("e2", "ERROR"),
        ]
        titles = [f.title for f in sort_findings(findings)]
        assert titles == ["e1", "e2", "w1", "w2"]

    def test_sort_bundle_in_place(self):
        report = ScanReport(
            category=ScanCategory.SAST,
            findings=[_finding("low", "INFO"), _finding("high", "ERROR")],
        )
        bundle = ReportBundle(reports={ScanCategory.SAST: report})
        assert sort_bundle(bundle) is bundle
        assert [f.title for f in bundle.reports[ScanCategory.SAST].findings] == ["high", "low"]

    def test_rank_all_keeps_category_tags(self):
        bundle = ReportBundle(reports={
            ScanCategory.SAST: ScanReport(category=ScanCategory.SAST, findings=[_finding("s", "INFO")]),
            ScanCategory.SCA: ScanReport(
                category=ScanCategory.SCA,
                findings=[_finding("c", "ERROR", ScanCategory.SCA)],
            ),
        })
        ranked = rank_all(bundle)
        assert [(f.title, f.category) for f in ranked] == [
            ("c", ScanCategory.SCA),
            ("s", ScanCategory.SAST),
        ]

    def test_top_findings(self):
        findings = [_finding(str(i), "WARNING") for i in range(8)]
        shown, remaining = top_findings(findings, 5)
        assert len(shown) == 5
        assert remaining == 3

    def test_top_findings_under_limit(self):
        shown, remaining = top_findings([_finding("only", "INFO")], 5)
        assert len(shown) == 1
        assert remaining == 0

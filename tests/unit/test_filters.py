"""Tests for the filter/pagination engine."""

from datetime import date

import pytest

from recruitsync.core.errors import FilterValidationError
from recruitsync.services.filters import (
    JobFilters,
    compose_job_query,
    job_suggestions,
    list_jobs,
    page_bounds,
)


class TestJobFilters:
    def test_aliases_and_blanks(self) -> None:
        f = JobFilters.parse(search="  ", dateFrom="2026-03-01", hasContacts=True)
        assert f.search is None
        assert f.date_from == date(2026, 3, 1)
        assert f.has_contacts is True

    def test_datetime_string_is_accepted(self) -> None:
        f = JobFilters.parse(dateTo="2026-03-01T10:00:00Z")
        assert f.date_to == date(2026, 3, 1)

    def test_invalid_date_is_rejected(self) -> None:
        with pytest.raises(FilterValidationError) as exc:
            JobFilters.parse(dateFrom="03/01/2026")
        assert exc.value.field == "dateFrom"
        assert exc.value.status_code == 422

    def test_reversed_range_is_rejected(self) -> None:
        with pytest.raises(FilterValidationError) as exc:
            JobFilters.parse(dateFrom="2026-03-05", dateTo="2026-03-01")
        assert exc.value.field == "dateTo"

    def test_unknown_field_is_rejected(self) -> None:
        with pytest.raises(FilterValidationError):
            JobFilters.parse(salary="100k")


class TestComposeJobQuery:
    def test_is_deterministic(self) -> None:
        f = JobFilters.parse(search="eng", location="MN", hasContacts=True)
        a = str(compose_job_query(f, run_id="R1"))
        b = str(compose_job_query(f, run_id="R1"))
        assert a == b

    def test_run_scope_is_an_extra_predicate(self) -> None:
        f = JobFilters()
        assert "run_id" not in str(compose_job_query(f))
        assert "run_id" in str(compose_job_query(f, run_id="R1"))


class TestPageBounds:
    def test_offset(self) -> None:
        assert page_bounds(3, 20) == (40, 20)

    @pytest.mark.parametrize("page,limit", [(0, 20), (1, 0), (1, 10_000)])
    def test_rejects_bad_values(self, page: int, limit: int) -> None:
        with pytest.raises(FilterValidationError):
            page_bounds(page, limit)


class TestListJobs:
    def test_order_posted_desc_nulls_last(self, dataset) -> None:  # type: ignore[no-untyped-def]
        page = list_jobs(dataset, JobFilters(), run_id="R1")
        assert [j.job_id for j in page.data] == ["j2", "j1", "j3"]
        assert page.total == 3

    def test_browse_mode_spans_runs(self, dataset) -> None:  # type: ignore[no-untyped-def]
        assert list_jobs(dataset, JobFilters()).total == 4

    def test_has_contacts(self, dataset) -> None:  # type: ignore[no-untyped-def]
        page = list_jobs(dataset, JobFilters.parse(hasContacts=True), page=1, limit=20, run_id="R1")
        assert [j.job_id for j in page.data] == ["j2"]
        assert page.total == 1

    def test_search_matches_title_or_company(self, dataset) -> None:  # type: ignore[no-untyped-def]
        by_title = list_jobs(dataset, JobFilters.parse(search="backend"), run_id="R1")
        by_company = list_jobs(dataset, JobFilters.parse(search="initech"), run_id="R1")
        assert [j.job_id for j in by_title.data] == ["j2"]
        assert [j.job_id for j in by_company.data] == ["j3"]

    def test_source_matches_source_type(self, dataset) -> None:  # type: ignore[no-untyped-def]
        page = list_jobs(dataset, JobFilters.parse(source="aggregator"))
        assert [j.job_id for j in page.data] == ["j2"]

    def test_date_range_is_inclusive(self, dataset) -> None:  # type: ignore[no-untyped-def]
        page = list_jobs(dataset, JobFilters.parse(dateFrom="2026-03-01", dateTo="2026-03-01"), run_id="R1")
        assert [j.job_id for j in page.data] == ["j1"]

    def test_location_substring(self, dataset) -> None:  # type: ignore[no-untyped-def]
        page = list_jobs(dataset, JobFilters.parse(location="mn"), run_id="R1")
        assert {j.job_id for j in page.data} == {"j1", "j3"}

    def test_out_of_range_page_is_empty_with_total(self, dataset) -> None:  # type: ignore[no-untyped-def]
        page = list_jobs(dataset, JobFilters(), page=9, limit=2, run_id="R1")
        assert page.data == []
        assert page.total == 3
        assert page.page == 9

    def test_pagination_splits_in_order(self, dataset) -> None:  # type: ignore[no-untyped-def]
        first = list_jobs(dataset, JobFilters(), page=1, limit=2, run_id="R1")
        second = list_jobs(dataset, JobFilters(), page=2, limit=2, run_id="R1")
        assert [j.job_id for j in first.data + second.data] == ["j2", "j1", "j3"]

    def test_like_wildcards_match_literally(self, db, add_job) -> None:  # type: ignore[no-untyped-def]
        add_job(db, "w1", "R1", title="C_Engineer")
        add_job(db, "w2", "R1", title="CxEngineer")
        add_job(db, "w3", "R1", title="100% remote")
        add_job(db, "w4", "R1", title="100 onsite")
        underscore = list_jobs(db, JobFilters.parse(search="C_E"), run_id="R1")
        percent = list_jobs(db, JobFilters.parse(search="100%"), run_id="R1")
        assert [j.job_id for j in underscore.data] == ["w1"]
        assert [j.job_id for j in percent.data] == ["w3"]

    def test_repeatable(self, dataset) -> None:  # type: ignore[no-untyped-def]
        f = JobFilters.parse(location="MN")
        assert list_jobs(dataset, f, run_id="R1") == list_jobs(dataset, f, run_id="R1")


class TestSuggestions:
    def test_scoped_to_run(self, dataset) -> None:  # type: ignore[no-untyped-def]
        s = job_suggestions(dataset, run_id="R1")
        assert s.companies == ["Acme", "Globex", "Initech"]
        assert s.sources == ["Indeed", "LinkedIn", "aggregator"]

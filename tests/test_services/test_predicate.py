"""Tests for predicate service — threshold, range, exact-match and keyword filters."""
import pytest

from app.schemas.deal_schema import DealType
from app.schemas.filter_schema import FilterCriteria, RangeCriterion, ThresholdCriterion
from app.services.predicate_service import (
    filter_deals,
    matches,
    matches_keyword,
    matches_range,
    matches_threshold,
)
from tests.conftest import make_record


class TestThreshold:
    def test_at_least(self):
        criterion = ThresholdCriterion(value=3)
        assert matches_threshold(3, criterion)
        assert matches_threshold(5, criterion)
        assert not matches_threshold(2, criterion)

    def test_exact(self):
        criterion = ThresholdCriterion(value=3, exact=True)
        assert matches_threshold(3, criterion)
        assert not matches_threshold(4, criterion)

    def test_exact_with_tolerance(self):
        criterion = ThresholdCriterion(value=2.5, exact=True)
        assert matches_threshold(2.505, criterion, epsilon=0.01)
        assert not matches_threshold(2.6, criterion, epsilon=0.01)

    def test_missing_value_fails(self):
        assert not matches_threshold(None, ThresholdCriterion(value=0))


class TestRange:
    def test_inclusive_bounds(self):
        criterion = RangeCriterion(min=1000, max=2000)
        assert matches_range(1000, criterion)
        assert matches_range(2000, criterion)
        assert not matches_range(999, criterion)
        assert not matches_range(2001, criterion)

    def test_open_bounds(self):
        assert matches_range(10 ** 9, RangeCriterion(min=1))
        assert matches_range(0, RangeCriterion(max=5))

    def test_missing_value_fails(self):
        assert not matches_range(None, RangeCriterion(min=0))


class TestKeyword:
    def test_matches_title_address_or_city(self):
        deal = make_record("d1", title="Brick Ranch", property_address="12 Elm St", property_city="Dayton")
        assert matches_keyword(deal, "ranch")
        assert matches_keyword(deal, "ELM")
        assert matches_keyword(deal, "dayt")
        assert not matches_keyword(deal, "duplex")

    def test_ignores_description(self):
        deal = make_record("d1", description="waterfront duplex")
        assert not matches_keyword(deal, "waterfront")


class TestMatches:
    def test_empty_criteria_matches_everything(self):
        deal = make_record("d1", bedrooms=None, square_feet="n/a")
        assert matches(deal, FilterCriteria())

    def test_missing_facet_fails_set_criterion(self):
        deal = make_record("d1", square_feet=None)
        assert not matches(deal, FilterCriteria(square_feet=RangeCriterion(min=0)))

    def test_text_facets_are_coerced(self):
        deal = make_record("d1", square_feet=" 1,850 ", asking_price="$85,000")
        assert matches(deal, FilterCriteria(square_feet=RangeCriterion(min=1800, max=1900)))

    def test_unparseable_facet_is_missing(self):
        deal = make_record("d1", square_feet="about 1500")
        assert not matches(deal, FilterCriteria(square_feet=RangeCriterion(max=5000)))

    def test_bathroom_exact_uses_tolerance(self):
        deal = make_record("d1", bathrooms=2.5)
        assert matches(deal, FilterCriteria(bathrooms=ThresholdCriterion(value=2.5, exact=True)))
        assert not matches(deal, FilterCriteria(bathrooms=ThresholdCriterion(value=2, exact=True)))

    def test_deal_type(self):
        deal = make_record("d1", deal_type="SELLER_FINANCE")
        assert matches(deal, FilterCriteria(deal_type=DealType.SELLER_FINANCE))
        assert not matches(deal, FilterCriteria(deal_type=DealType.CASH_DEAL))

    def test_city_and_zip_are_exact_case_insensitive(self):
        deal = make_record("d1", property_city="New Albany", property_zip="43054")
        assert matches(deal, FilterCriteria(city="new albany", zipcode="43054"))
        assert not matches(deal, FilterCriteria(city="Albany"))

    def test_entry_price_uses_buyer_entry_cost(self):
        deal = make_record("d1", asking_price=100000, buyer_entry_cost=15000)
        assert matches(deal, FilterCriteria(entry_price=RangeCriterion(min=10000, max=20000)))

    def test_entry_price_falls_back_to_share_of_asking(self):
        deal = make_record("d1", asking_price=100000, buyer_entry_cost=None)
        assert deal.entry_cost == pytest.approx(20000)
        assert matches(deal, FilterCriteria(entry_price=RangeCriterion(min=19999, max=20001)))
        assert not matches(deal, FilterCriteria(entry_price=RangeCriterion(max=15000)))

    def test_entry_price_missing_when_no_prices(self):
        deal = make_record("d1", asking_price=None, buyer_entry_cost=None)
        assert not matches(deal, FilterCriteria(entry_price=RangeCriterion(min=0)))

    def test_criteria_are_conjunctive(self):
        deal = make_record("d1", bedrooms=3, property_city="Dayton")
        criteria = FilterCriteria(bedrooms=ThresholdCriterion(value=3), city="Columbus")
        assert not matches(deal, criteria)


class TestFilterDeals:
    def test_preserves_order(self):
        deals = [make_record("a", bedrooms=4), make_record("b", bedrooms=1), make_record("c", bedrooms=3)]
        result = filter_deals(deals, FilterCriteria(bedrooms=ThresholdCriterion(value=3)))
        assert [d.id for d in result] == ["a", "c"]

    def test_adding_a_criterion_never_grows_the_result(self):
        deals = [make_record(str(i), bedrooms=i, square_feet=1000 + i * 250) for i in range(6)]
        broad = filter_deals(deals, FilterCriteria(bedrooms=ThresholdCriterion(value=2)))
        narrow = filter_deals(deals, FilterCriteria(
            bedrooms=ThresholdCriterion(value=2),
            square_feet=RangeCriterion(max=1800),
        ))
        assert {d.id for d in narrow} <= {d.id for d in broad}
        assert [d.id for d in narrow] == ["2", "3"]


class TestThresholdMonotonicity:
    BEDROOMS = [None, "4", "lots", 0, 2, 3, 5, 7]
    BATHROOMS = [None, "2.5", "n/a", 1, 1.5, 2, 3, 4.5]

    def _count(self, deals, facet, value, exact):
        criteria = FilterCriteria(**{facet: ThresholdCriterion(value=value, exact=exact)})
        return len(filter_deals(deals, criteria))

    @pytest.mark.parametrize("facet,values,steps", [
        ("bedrooms", BEDROOMS, [float(v) for v in range(7)]),
        ("bathrooms", BATHROOMS, [v / 2 for v in range(13)]),
    ])
    def test_raising_minimum_never_adds_matches(self, facet, values, steps):
        deals = [make_record(str(i), **{facet: v}) for i, v in enumerate(values)]
        counts = [self._count(deals, facet, step, exact=False) for step in steps]
        assert counts == sorted(counts, reverse=True)
        for step in steps:
            assert self._count(deals, facet, step, exact=True) <= self._count(deals, facet, step, exact=False)

    def test_unparseable_facets_never_match(self):
        deals = [make_record(str(i), bedrooms=v) for i, v in enumerate(self.BEDROOMS)]
        result = filter_deals(deals, FilterCriteria(bedrooms=ThresholdCriterion(value=3)))
        assert [d.id for d in result] == ["1", "5", "6", "7"]

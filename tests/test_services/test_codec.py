"""Tests for codec service — URL query ⇄ FilterCriteria, page request, filter chips."""
from urllib.parse import parse_qsl

from app.schemas.deal_schema import DealType
from app.schemas.filter_schema import FilterCriteria, PageRequest, RangeCriterion, ThresholdCriterion
from app.services.codec_service import (
    active_filter_tags,
    build_query_string,
    decode_criteria,
    decode_page_request,
    encode_criteria,
    encode_page_request,
    format_number,
    merge_criteria,
    remove_filter_keys,
)


class TestDecodeCriteria:
    def test_empty_query(self):
        criteria = decode_criteria({})
        assert criteria == FilterCriteria()
        assert criteria.is_empty

    def test_threshold_at_least(self):
        criteria = decode_criteria({"bedrooms": "3"})
        assert criteria.bedrooms == ThresholdCriterion(value=3, exact=False)

    def test_threshold_exact(self):
        criteria = decode_criteria({"bathrooms": "2.5", "exactBathrooms": "true"})
        assert criteria.bathrooms == ThresholdCriterion(value=2.5, exact=True)

    def test_exact_flag_without_value_is_ignored(self):
        assert decode_criteria({"exactBedrooms": "true"}).bedrooms is None

    def test_fractional_bedrooms_truncated(self):
        assert decode_criteria({"bedrooms": "3.7"}).bedrooms.value == 3

    def test_ranges(self):
        criteria = decode_criteria({"minSqFt": "1000", "maxLotSize": "0.5", "minEntryPrice": "10000", "maxEntryPrice": "20000"})
        assert criteria.square_feet == RangeCriterion(min=1000, max=None)
        assert criteria.lot_size == RangeCriterion(min=None, max=0.5)
        assert criteria.entry_price == RangeCriterion(min=10000, max=20000)

    def test_malformed_numbers_are_absent(self):
        criteria = decode_criteria({"bedrooms": "lots", "minSqFt": "abc", "maxSqFt": "NaN"})
        assert criteria.bedrooms is None
        assert criteria.square_feet is None

    def test_negative_numbers_are_absent(self):
        assert decode_criteria({"bedrooms": "-1", "minEntryPrice": "-500"}).is_empty

    def test_deal_type_case_insensitive(self):
        assert decode_criteria({"dealType": "Seller_Finance"}).deal_type == DealType.SELLER_FINANCE

    def test_unknown_deal_type_is_absent(self):
        assert decode_criteria({"dealType": "timeshare"}).deal_type is None

    def test_text_is_stripped(self):
        criteria = decode_criteria({"city": "  Springfield ", "zipcode": " ", "search": " ranch "})
        assert criteria.city == "Springfield"
        assert criteria.zipcode is None
        assert criteria.search == "ranch"

    def test_unknown_keys_ignored(self):
        assert decode_criteria({"utm_source": "mail", "page": "3"}).is_empty


class TestEncodeCriteria:
    def test_empty_criteria_encodes_to_nothing(self):
        assert encode_criteria(FilterCriteria()) == {}

    def test_threshold_writes_both_keys(self):
        query = encode_criteria(FilterCriteria(bedrooms=ThresholdCriterion(value=3)))
        assert query == {"bedrooms": "3", "exactBedrooms": "false"}

    def test_half_bathroom_kept(self):
        query = encode_criteria(FilterCriteria(bathrooms=ThresholdCriterion(value=1.5, exact=True)))
        assert query == {"bathrooms": "1.5", "exactBathrooms": "true"}

    def test_open_range_writes_one_bound(self):
        query = encode_criteria(FilterCriteria(square_feet=RangeCriterion(max=2000)))
        assert query == {"maxSqFt": "2000"}

    def test_canonical_key_order(self):
        criteria = FilterCriteria(
            search="ranch",
            city="Springfield",
            entry_price=RangeCriterion(min=5000),
            deal_type=DealType.CASH_DEAL,
            bedrooms=ThresholdCriterion(value=2),
        )
        assert list(encode_criteria(criteria)) == [
            "bedrooms", "exactBedrooms", "dealType", "minEntryPrice", "city", "search",
        ]

    def test_decode_of_encode_is_identity(self):
        criteria = FilterCriteria(
            bedrooms=ThresholdCriterion(value=4, exact=True),
            bathrooms=ThresholdCriterion(value=2.5),
            square_feet=RangeCriterion(min=1000, max=2500),
            lot_size=RangeCriterion(min=0.25),
            entry_price=RangeCriterion(max=30000),
            deal_type=DealType.TRUST_ACQUISITION,
            city="Dayton",
            zipcode="45402",
            search="duplex",
        )
        assert decode_criteria(encode_criteria(criteria)) == criteria

    def test_encoding_is_stable(self):
        query = {"city": "Dayton", "bedrooms": "3", "maxSqFt": "2000.0"}
        once = encode_criteria(decode_criteria(query))
        assert encode_criteria(decode_criteria(once)) == once


class TestFormatNumber:
    def test_whole_number(self):
        assert format_number(3.0) == "3"

    def test_fraction(self):
        assert format_number(0.25) == "0.25"


class TestPageRequest:
    def test_defaults(self):
        assert decode_page_request({}, default_limit=25) == PageRequest(page=1, limit=25)

    def test_malformed_falls_back(self):
        assert decode_page_request({"page": "two", "limit": ""}, default_limit=25) == PageRequest(page=1, limit=25)

    def test_reads_values(self):
        assert decode_page_request({"page": "3", "limit": "50"}) == PageRequest(page=3, limit=50)

    def test_encode_omits_defaults(self):
        assert encode_page_request(PageRequest(page=1, limit=25), default_limit=25) == {}
        assert encode_page_request(PageRequest(page=2, limit=10), default_limit=25) == {"page": "2", "limit": "10"}


class TestQueryString:
    def test_build_query_string(self):
        criteria = FilterCriteria(city="New Albany", bedrooms=ThresholdCriterion(value=3))
        qs = build_query_string(criteria, PageRequest(page=2, limit=25))
        assert dict(parse_qsl(qs)) == {
            "bedrooms": "3", "exactBedrooms": "false", "city": "New Albany", "page": "2",
        }

    def test_merge_resets_page_and_keeps_other_keys(self):
        query = {"bedrooms": "2", "page": "4", "limit": "50", "ref": "email"}
        merged = merge_criteria(query, FilterCriteria(city="Dayton"))
        assert merged == {"limit": "50", "ref": "email", "city": "Dayton"}

    def test_remove_filter_keys(self):
        query = {"bedrooms": "3", "exactBedrooms": "true", "city": "Dayton", "page": "2"}
        assert remove_filter_keys(query, ["bedrooms", "exactBedrooms"]) == {"city": "Dayton"}


class TestActiveFilterTags:
    def test_no_tags_for_empty_criteria(self):
        assert active_filter_tags(FilterCriteria()) == []

    def test_tag_values(self):
        criteria = FilterCriteria(
            bedrooms=ThresholdCriterion(value=3),
            bathrooms=ThresholdCriterion(value=2, exact=True),
            square_feet=RangeCriterion(min=1000, max=2000),
            lot_size=RangeCriterion(max=0.5),
            deal_type=DealType.MORTGAGE_TAKEOVER,
            entry_price=RangeCriterion(min=10000),
            zipcode="45501",
        )
        values = {tag.key: tag.value for tag in active_filter_tags(criteria)}
        assert values == {
            "bedrooms": "3+",
            "bathrooms": "2",
            "sqft": "1,000-2,000",
            "lotsize": "Up to 0.5 acres",
            "dealType": "Mortgage Takeover",
            "entryprice": "$10,000+",
            "zipcode": "45501",
        }

    def test_removing_a_tag_clears_its_criterion(self):
        criteria = FilterCriteria(bedrooms=ThresholdCriterion(value=3), city="Dayton")
        query = encode_criteria(criteria)
        tag = active_filter_tags(criteria)[0]
        remaining = decode_criteria(remove_filter_keys(query, tag.remove_keys))
        assert remaining == FilterCriteria(city="Dayton")

from pricemyfloor.utils.postal_codes import (
    PREFIX_BROAD,
    PREFIX_MEDIUM,
    PREFIX_SPECIFIC,
    calculate_total_coverage,
    check_for_overlapping_prefixes,
    format_postal_code,
    get_postal_prefix_info,
    postal_code_matches,
    validate_postal_code,
    validate_postal_prefix,
)


def test_format_inserts_space_and_uppercases():
    assert format_postal_code("m5v2t6") == "M5V 2T6"
    assert format_postal_code(" l5j 4k9 ") == "L5J 4K9"


def test_format_stops_at_first_invalid_character():
    assert format_postal_code("12345") == ""
    assert format_postal_code("M5D") == "M5"


def test_validate_postal_code():
    assert validate_postal_code("M5V 2T6")
    assert not validate_postal_code("M5V2T6")
    assert not validate_postal_code("12345")
    assert not validate_postal_code("W5V 2T6")


def test_prefix_classification_by_length():
    assert validate_postal_prefix("l").type == PREFIX_BROAD
    assert validate_postal_prefix("L5").type == PREFIX_MEDIUM
    assert validate_postal_prefix("L5J").type == PREFIX_SPECIFIC


def test_invalid_prefixes_report_errors():
    assert validate_postal_prefix("").error == "Prefix cannot be empty"
    assert not validate_postal_prefix("D").is_valid
    assert not validate_postal_prefix("LL").is_valid
    assert not validate_postal_prefix("L5J4").is_valid


def test_prefix_info_estimates():
    assert get_postal_prefix_info("M").estimated_areas == 100
    assert get_postal_prefix_info("M5").estimated_areas == 20
    assert get_postal_prefix_info("M5V").estimated_areas == 5


def test_overlaps_are_reported_once():
    report = check_for_overlapping_prefixes(["L", "L5", "M1"])
    assert report.has_overlap
    assert report.conflicts == ["L overlaps with L5"]
    assert not check_for_overlapping_prefixes(["L5", "M1"]).has_overlap


def test_coverage_levels():
    assert calculate_total_coverage(["M5V"]).coverage_level == "Limited"
    assert calculate_total_coverage(["M5", "M4", "M3"]).coverage_level == "Good"
    assert calculate_total_coverage(["M", "L5"]).coverage_level == "Excellent"
    assert calculate_total_coverage(["M", "L", "K1"]).coverage_level == "Maximum"


def test_postal_code_matching():
    assert postal_code_matches("M5V 2T6", ["M5"])
    assert postal_code_matches("m5v2t6", ["m"])
    assert not postal_code_matches("L5J 4K9", ["M5"])
    assert not postal_code_matches("M5V 2T6", [])
    assert not postal_code_matches("M5V 2T6", None)

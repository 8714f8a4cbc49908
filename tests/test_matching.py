from __future__ import annotations

from phone_order_service.matching import (
    EXACT_SCORE,
    SUBSTRING_SCORE,
    composite_label,
    match_variants,
    score_variant,
)


def _product(title: str, *variants: dict) -> dict:
    return {"title": title, "variants": list(variants)}


def _variant(variant_id: int, title: str, *options: str, quantity: int = 5) -> dict:
    variant = {"id": variant_id, "title": title, "price": "10.00", "inventory_quantity": quantity}
    for index, option in enumerate(options, start=1):
        variant[f"option{index}"] = option
    return variant


def test_composite_label_skips_missing_options() -> None:
    assert composite_label({"option1": "Large", "option2": None, "option3": "Cotton"}) == "Large / Cotton"
    assert composite_label({}) == ""


def test_exact_match_is_case_insensitive() -> None:
    assert score_variant("LARGE / blue", "Large / Blue", "") == EXACT_SCORE
    assert score_variant("large blue", "Something else", "Large Blue") == EXACT_SCORE


def test_substring_match_either_direction() -> None:
    assert score_variant("blue", "Large / Blue", "Large / Blue") == SUBSTRING_SCORE
    assert score_variant("the large / blue one", "Large / Blue", "") == SUBSTRING_SCORE


def test_token_overlap_score() -> None:
    # 'large' overlaps, 'green' does not → 1 of 2 tokens
    assert score_variant("large green", "Small / Blue", "Large / Cotton") == 25.0


def test_empty_request_scores_zero() -> None:
    assert score_variant("", "Large / Blue", "Large / Blue") == 0.0
    assert score_variant("   ", "Large / Blue", "Large / Blue") == 0.0


def test_empty_label_does_not_count_as_substring() -> None:
    assert score_variant("red", "Blue", "") == 0.0


def test_ranking_exact_over_substring_over_tokens() -> None:
    products = [
        _product(
            "Shirt",
            _variant(1, "Navy / Blue", "Navy", "Blue"),
            _variant(2, "Large / Blue Heather", "Large", "Blue Heather"),
            _variant(3, "Large / Blue", "Large", "Blue"),
        ),
    ]

    ranked = match_variants(products, "Large / Blue")

    assert [c.variant_id for c in ranked] == [3, 2, 1]
    assert ranked[0].match_score == EXACT_SCORE
    assert ranked[1].match_score == SUBSTRING_SCORE
    assert 0 < ranked[2].match_score <= 50


def test_non_matching_variants_are_dropped() -> None:
    products = [_product("Mug", _variant(1, "Red", "Red"), _variant(2, "Green", "Green"))]
    ranked = match_variants(products, "red")
    assert [c.variant_id for c in ranked] == [1]


def test_products_without_variants_are_skipped_and_results_merged() -> None:
    products = [
        _product("Gift Card"),
        _product("Shirt", _variant(1, "Small", "Small")),
        _product("Hoodie", _variant(2, "Small", "Small")),
    ]
    ranked = match_variants(products, "small")
    assert {c.product_title for c in ranked} == {"Shirt", "Hoodie"}
    assert all(c.match_score == EXACT_SCORE for c in ranked)


def test_empty_request_lists_every_variant_in_catalog_order() -> None:
    products = [_product("Shirt", _variant(1, "Small", "Small"), _variant(2, "Large", "Large"))]
    ranked = match_variants(products, None)
    assert [c.variant_id for c in ranked] == [1, 2]
    assert all(c.match_score == 0 for c in ranked)


def test_candidate_fields() -> None:
    products = [
        _product("Shirt", _variant(7, "Large / Blue", "Large", "Blue", quantity=3)),
        _product("Mug", _variant(8, "Default Title", "Default Title")),
    ]
    ranked = match_variants(products, "")
    shirt, mug = ranked

    assert shirt.display_name == "Shirt - Large / Blue"
    assert shirt.option_labels == ("Large", "Blue")
    assert shirt.inventory_quantity == 3
    assert shirt.price == "10.00"
    assert shirt.to_dict()["option_labels"] == ["Large", "Blue"]
    assert mug.display_name == "Mug"

from decimal import Decimal

import pytest

from awesome_discount.engine.evaluator import DiscountEvaluator
from awesome_discount.engine.plan import DEFAULT_PLAN_DICT, DiscountPlan, PlanError


def _plan(**overrides):
    d = {
        "planVersion": "v1",
        "maxCombinedDiscount": 50,
        "sources": [
            {"id": "volume", "type": "volume_discount"},
            {"id": "tags", "type": "tag_discount"},
        ],
        "mergeGroups": [{"id": "cart_wide", "sources": ["volume", "tags"]}],
    }
    d.update(overrides)
    return d


def test_plan_from_dict_happy():
    plan = DiscountPlan.from_dict(_plan())

    assert plan.max_combined_discount == Decimal("50")
    assert [s.id for s in plan.sources] == ["volume", "tags"]
    assert plan.group_of("tags").id == "cart_wide"
    # title falls back to id
    assert plan.merge_groups[0].title == "cart_wide"


def test_plan_duplicate_source_ids():
    with pytest.raises(PlanError, match="Duplicate source ids"):
        DiscountPlan.from_dict(
            _plan(sources=[{"id": "tags", "type": "tag_discount"}, {"id": "tags", "type": "tag_discount"}], mergeGroups=[])
        )


def test_plan_group_references_unknown_source():
    with pytest.raises(PlanError, match="unknown source ids"):
        DiscountPlan.from_dict(_plan(mergeGroups=[{"id": "g", "sources": ["nope"]}]))


def test_plan_source_in_two_groups():
    with pytest.raises(PlanError, match="more than one merge group"):
        DiscountPlan.from_dict(
            _plan(mergeGroups=[{"id": "a", "sources": ["tags"]}, {"id": "b", "sources": ["tags", "volume"]}])
        )


def test_plan_cap_out_of_range():
    with pytest.raises(PlanError):
        DiscountPlan.from_dict(_plan(maxCombinedDiscount=150))


def test_plan_needs_sources():
    with pytest.raises(PlanError, match="at least one"):
        DiscountPlan.from_dict({"sources": []})


def test_plan_with_cap_keeps_structure():
    plan = DiscountPlan.from_dict(_plan()).with_cap(Decimal("100"))

    assert plan.max_combined_discount == Decimal("100")
    assert plan.group_of("volume").id == "cart_wide"


def test_default_plan_dict_matches_default_yaml(plans_dir):
    from_yaml = DiscountEvaluator.from_yaml_file(str(plans_dir / "default.yaml")).plan
    from_dict = DiscountPlan.from_dict(DEFAULT_PLAN_DICT)

    assert from_yaml == from_dict


def test_yaml_plan_failing_schema_raises_plan_error(tmp_path):
    p = tmp_path / "bad.yaml"
    p.write_text("sources:\n  - id: x\n    type: coupon\n", encoding="utf-8")

    with pytest.raises(PlanError):
        DiscountEvaluator.from_yaml_file(str(p))

import json
from datetime import datetime, timedelta, timezone

import pytest

from eksblueprint.registry import ImageDetail, RetentionPolicy

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def image(n, hours_old, tags=None):
    return ImageDetail(
        digest=f"sha256:{n:064x}",
        pushed_at=NOW - timedelta(hours=hours_old),
        tags=tuple(tags if tags is not None else [f"build-{n}"]),
    )


class TestLifecycleRules:

    def test_rules_in_priority_order(self):
        rules = RetentionPolicy(max_image_count=5, untagged_expiry_days=2).lifecycle_rules()

        assert [rule["rulePriority"] for rule in rules] == [1, 2]
        assert rules[0]["selection"] == {
            "tagStatus": "untagged",
            "countType": "sinceImagePushed",
            "countUnit": "days",
            "countNumber": 2,
        }
        assert rules[1]["selection"] == {
            "tagStatus": "any",
            "countType": "imageCountMoreThan",
            "countNumber": 5,
        }
        assert all(rule["action"] == {"type": "expire"} for rule in rules)

    def test_descriptions(self):
        policy = RetentionPolicy(max_image_count=10, untagged_expiry_days=1)
        assert policy.untagged_rule_description == "Remove untagged images after 1 day"
        assert policy.count_rule_description == "Keep last 10 images"

    def test_policy_text_is_json(self):
        text = RetentionPolicy().lifecycle_policy_text()
        assert len(json.loads(text)["rules"]) == 2

    @pytest.mark.parametrize("kwargs", [{"max_image_count": 0}, {"untagged_expiry_days": 0}])
    def test_rejects_invalid_policy(self, kwargs):
        with pytest.raises(ValueError):
            RetentionPolicy(**kwargs)


class TestEvaluate:

    def test_keeps_newest_images(self):
        images = [image(n, hours_old=n) for n in range(15)]
        result = RetentionPolicy(max_image_count=10).evaluate(images, now=NOW)

        assert [i.digest for i in result.retained] == [image(n, n).digest for n in range(10)]
        assert len(result.expired) == 5
        assert all(result.expired_by[i.digest] == "Keep last 10 images" for i in result.expired)

    def test_under_limit_keeps_everything(self):
        images = [image(n, hours_old=n) for n in range(3)]
        result = RetentionPolicy(max_image_count=10).evaluate(images, now=NOW)

        assert len(result.retained) == 3
        assert result.expired == []

    def test_old_untagged_expire_first(self):
        images = [
            image(1, hours_old=1),
            image(2, hours_old=30, tags=[]),
            image(3, hours_old=2, tags=[]),
        ]
        result = RetentionPolicy(max_image_count=10, untagged_expiry_days=1).evaluate(images, now=NOW)

        assert {i.digest for i in result.expired} == {image(2, 30, []).digest}
        assert result.expired_by[image(2, 30, []).digest] == "Remove untagged images after 1 day"
        assert len(result.retained) == 2

    def test_expired_untagged_do_not_count_against_limit(self):
        images = [image(n, hours_old=n) for n in range(3)]
        images += [image(100 + n, hours_old=48 + n, tags=[]) for n in range(5)]
        result = RetentionPolicy(max_image_count=3).evaluate(images, now=NOW)

        assert len(result.retained) == 3
        assert all(i.tagged for i in result.retained)
        assert len(result.expired) == 5

    @pytest.mark.parametrize("count", [1, 2, 5, 10])
    def test_never_retains_more_than_count(self, count):
        images = [image(n, hours_old=n % 7, tags=[] if n % 3 == 0 else None) for n in range(40)]
        result = RetentionPolicy(max_image_count=count).evaluate(images, now=NOW)

        assert len(result.retained) <= count
        assert len(result.retained) + len(result.expired) == 40

    def test_naive_times_are_utc(self):
        naive_now = NOW.replace(tzinfo=None)
        images = [
            ImageDetail(digest="sha256:old", pushed_at=naive_now - timedelta(days=3)),
            ImageDetail(digest="sha256:new", pushed_at=naive_now - timedelta(hours=1)),
        ]

        result = RetentionPolicy(untagged_expiry_days=1).evaluate(images, now=naive_now)

        assert [i.digest for i in result.retained] == ["sha256:new"]
        assert [i.digest for i in result.expired] == ["sha256:old"]

    def test_naive_now_with_aware_images(self):
        images = [image(1, hours_old=2, tags=[])]
        result = RetentionPolicy().evaluate(images, now=NOW.replace(tzinfo=None))
        assert result.retained == images

    def test_default_now(self):
        fresh = ImageDetail(digest="sha256:a", pushed_at=datetime.now(timezone.utc), tags=())
        result = RetentionPolicy().evaluate([fresh])
        assert result.retained == [fresh]


def test_from_ecr_description():
    detail = ImageDetail.from_ecr({
        "imageDigest": "sha256:abc",
        "imagePushedAt": datetime(2024, 1, 1, 0, 0),
    })
    assert detail.digest == "sha256:abc"
    assert detail.tags == ()
    assert not detail.tagged
    assert detail.pushed_at.tzinfo == timezone.utc


def test_image_detail_normalizes_pushed_at():
    detail = ImageDetail(digest="sha256:abc", pushed_at=datetime(2024, 1, 1, 12, 0), tags=["v1"])
    assert detail.pushed_at == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert detail.tags == ("v1",)

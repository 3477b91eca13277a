from __future__ import annotations

from subsync.adapters.memory import InMemoryExternalIdMapper, InMemorySubscriptionRepository
from subsync.domain.model import EntityType, IdMapping, Provider
from tests.helpers.subscriptions import make_subscription


def test_unknown_ids_return_none_for_unused_namespaces() -> None:
    mapper = InMemoryExternalIdMapper()

    assert mapper.get_internal_id(EntityType.PRICE, Provider.STRIPE, "price_1") is None
    assert mapper.get_external_id(EntityType.PRICE, Provider.STRIPE, "price-1") is None
    assert mapper.get_internal_id_map(EntityType.PRICE, Provider.STRIPE, ["price_1"]) == {}
    assert mapper.get_external_id_map(EntityType.PRICE, Provider.STRIPE, []) == {}


def test_seeded_mappings_are_visible_both_ways() -> None:
    mapper = InMemoryExternalIdMapper(
        [
            IdMapping(
                entity_type=EntityType.PRICE,
                provider=Provider.STRIPE,
                internal_id="price-basic",
                external_id="price_1",
            )
        ]
    )

    assert mapper.get_internal_id(EntityType.PRICE, Provider.STRIPE, "price_1") == "price-basic"
    assert mapper.get_external_id_map(EntityType.PRICE, Provider.STRIPE, ["price-basic"]) == {
        "price-basic": "price_1"
    }
    assert len(mapper) == 1


def test_repairing_keeps_mapping_one_to_one() -> None:
    mapper = InMemoryExternalIdMapper()
    mapper.store(EntityType.SUBSCRIPTION, Provider.STRIPE, "sub-1", "sub_a")
    mapper.store(EntityType.SUBSCRIPTION, Provider.STRIPE, "sub-1", "sub_b")
    mapper.store(EntityType.SUBSCRIPTION, Provider.STRIPE, "sub-2", "sub_b")

    assert mapper.get_internal_id(EntityType.SUBSCRIPTION, Provider.STRIPE, "sub_a") is None
    assert mapper.get_internal_id(EntityType.SUBSCRIPTION, Provider.STRIPE, "sub_b") == "sub-2"
    assert mapper.get_external_id(EntityType.SUBSCRIPTION, Provider.STRIPE, "sub-1") is None
    assert len(mapper) == 1


def test_namespaces_do_not_collide() -> None:
    mapper = InMemoryExternalIdMapper()
    mapper.store(EntityType.PRICE, Provider.STRIPE, "x", "ext")
    mapper.store(EntityType.PRODUCT, Provider.STRIPE, "y", "ext")

    assert mapper.get_internal_id(EntityType.PRICE, Provider.STRIPE, "ext") == "x"
    assert mapper.get_internal_id(EntityType.PRODUCT, Provider.STRIPE, "ext") == "y"


def test_repository_save_replaces_and_records() -> None:
    original = make_subscription()
    repository = InMemorySubscriptionRepository([original])
    activated = original.activate()

    repository.save(activated)

    assert repository.find(original.id) == activated
    assert repository.saved == [activated]
    assert repository.find("missing") is None

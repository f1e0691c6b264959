"""
tests/test_customization_service.py — Reading the equipped-cosmetics projection
================================================================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import delete
from sqlalchemy.orm import Session

from conftest import make_item, make_profile
from slrp_economy.database.models import InventoryEntry, ShopItem
from slrp_economy.errors import ValidationError
from slrp_economy.services import catalog_service, customization_service
from slrp_economy.services.customization_service import DEFAULT_CUSTOMIZATION


def _equip(engine, uid: str, item_id: str, category: str) -> None:
    with Session(engine) as session:
        session.add(InventoryEntry(user_id=uid, item_id=item_id))
        session.commit()
    catalog_service.equip(engine, uid, item_id, category)


@pytest.fixture
def styled_user(db_engine) -> dict:
    uid = make_profile(db_engine, username="styled")
    badge = make_item(db_engine, name="Spark", category="badge", item_type="animated_badge",
                      item_data={"emoji": "✨"})
    frame = make_item(db_engine, name="Gold", category="profile_frame", item_type="frame",
                      item_data={"color": "#facc15"})
    effect = make_item(db_engine, name="Glow", category="bio_effect",
                       item_data={"effect": "glow"})
    _equip(db_engine, uid, make_item(db_engine), "username_style")
    _equip(db_engine, uid, badge, "badge")
    _equip(db_engine, uid, frame, "profile_frame")
    _equip(db_engine, uid, effect, "bio_effect")
    return {"id": uid, "badge": badge, "frame": frame}


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------
class TestGetCustomization:
    def test_resolves_badge_and_frame(self, db_engine, styled_user):
        assert customization_service.get_customization(db_engine, styled_user["id"]) == {
            "username_color": "#dc2626",
            "equipped_badge_id": styled_user["badge"],
            "equipped_frame_id": styled_user["frame"],
            "equipped_bio_effect": "glow",
            "badge_emoji": "✨",
            "badge_animated": True,
            "frame_color": "#facc15",
        }

    def test_static_badge_is_not_animated(self, db_engine):
        uid = make_profile(db_engine)
        badge = make_item(db_engine, name="Star", category="badge", item_type="badge",
                          item_data={"emoji": "⭐"})
        _equip(db_engine, uid, badge, "badge")

        result = customization_service.get_customization(db_engine, uid)
        assert (result["badge_emoji"], result["badge_animated"]) == ("⭐", False)
        assert result["frame_color"] is None

    def test_nothing_equipped_gives_defaults(self, db_engine):
        uid = make_profile(db_engine)
        assert customization_service.get_customization(db_engine, uid) == DEFAULT_CUSTOMIZATION

    def test_deleted_badge_item_keeps_id_without_emoji(self, db_engine):
        uid = make_profile(db_engine)
        badge = make_item(db_engine, name="Star", category="badge", item_data={"emoji": "⭐"})
        _equip(db_engine, uid, badge, "badge")
        with Session(db_engine) as session:
            session.execute(delete(ShopItem).where(ShopItem.id == badge))
            session.commit()

        result = customization_service.get_customization(db_engine, uid)
        assert result["equipped_badge_id"] == badge
        assert result["badge_emoji"] is None


class TestGetCustomizations:
    def test_batch_mixes_rows_and_defaults(self, db_engine, styled_user):
        plain = make_profile(db_engine)
        result = customization_service.get_customizations(
            db_engine, [styled_user["id"], plain, styled_user["id"]],
        )
        assert set(result) == {styled_user["id"], plain}
        assert result[styled_user["id"]]["frame_color"] == "#facc15"
        assert result[plain] == DEFAULT_CUSTOMIZATION

    def test_defaults_are_independent_copies(self, db_engine):
        a, b = make_profile(db_engine), make_profile(db_engine)
        result = customization_service.get_customizations(db_engine, [a, b])
        result[a]["username_color"] = "#000"
        assert result[b]["username_color"] is None
        assert DEFAULT_CUSTOMIZATION["username_color"] is None

    def test_empty_request(self, db_engine):
        assert customization_service.get_customizations(db_engine, []) == {}

    def test_batch_limit(self, db_engine):
        ids = [f"user-{n}" for n in range(customization_service.MAX_BATCH + 1)]
        with pytest.raises(ValidationError, match="At most 100 user ids"):
            customization_service.get_customizations(db_engine, ids)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------
class TestProfileRoutes:
    def test_single_user_is_public(self, client, styled_user):
        resp = client.get(f"/api/profiles/{styled_user['id']}/customization")
        assert resp.status_code == 200
        assert resp.json()["badge_emoji"] == "✨"

    def test_unknown_user_gets_defaults(self, client):
        resp = client.get("/api/profiles/nobody/customization")
        assert resp.status_code == 200
        assert resp.json() == DEFAULT_CUSTOMIZATION

    def test_batch_with_repeated_params(self, client, db_engine, styled_user):
        plain = make_profile(db_engine)
        resp = client.get(
            "/api/profiles/customizations",
            params=[("user_ids", styled_user["id"]), ("user_ids", plain)],
        )
        body = resp.json()["customizations"]
        assert body[styled_user["id"]]["username_color"] == "#dc2626"
        assert body[plain] == DEFAULT_CUSTOMIZATION

    def test_batch_with_comma_list(self, client, db_engine, styled_user):
        plain = make_profile(db_engine)
        resp = client.get(
            "/api/profiles/customizations",
            params={"user_ids": f"{styled_user['id']},{plain}"},
        )
        assert set(resp.json()["customizations"]) == {styled_user["id"], plain}

    def test_batch_over_limit_is_400(self, client):
        ids = ",".join(f"user-{n}" for n in range(101))
        resp = client.get("/api/profiles/customizations", params={"user_ids": ids})
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_request"

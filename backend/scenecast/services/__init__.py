from scenecast.services.store import NotificationStore, SceneRecord, SubscriptionRecord, parse_json_safely

__all__ = ["NotificationStore", "SceneRecord", "SubscriptionRecord", "parse_json_safely"]

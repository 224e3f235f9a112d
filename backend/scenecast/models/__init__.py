from scenecast.models.scene import Scene
from scenecast.models.subscription import Subscription

__all__ = [
    "Scene",
    "Subscription",
]

"""Component classes shared by the tests.

Declared at module scope so that ``typing.get_type_hints`` can resolve them.
"""

from typing import Annotated

from autoref import (
    Asset,
    Component,
    FindInAssets,
    Get,
    GetInChildren,
    GetInParent,
    GetInSiblings,
    Name,
    Node,
    Path,
    Sync,
    SyncMode,
    Synced,
    on_after_sync,
)


class Image(Component):
    pass


class Button(Component):
    pass


class Label(Component):
    pass


class Canvas(Component):
    pass


class Rigidbody(Component):
    pass


class GameSettings(Asset):
    pass


class Plain(Component):
    """No annotations at all."""

    speed = 3


class Panel(Component):
    image: Annotated[Image | None, Get()] = None
    button: Annotated[Button | None, GetInChildren()] = None
    ok_button: Annotated[Button | None, GetInChildren(), Name("OK")] = None
    labels: Annotated[list[Label], GetInChildren()] = None


class LabelStrip(Component):
    labels: Annotated[tuple[Label, ...], GetInChildren(include_self=True)] = ()


class Child(Component):
    canvas: Annotated[Canvas | None, GetInParent()] = None
    canvases: Annotated[list[Canvas], GetInParent()] = None
    first_button: Annotated[Button | None, GetInSiblings()] = None
    buttons: Annotated[list[Button], GetInSiblings()] = None


class Configured(Component):
    settings: Annotated[GameSettings | None, FindInAssets(), Path("Assets/Settings/Game.asset")] = None
    enemy: Annotated[Node | None, FindInAssets(), Path("Assets/Prefabs/Enemy.prefab")] = None
    enemy_body: Annotated[Rigidbody | None, FindInAssets(), Path("Assets/Prefabs/Enemy.prefab")] = None


class MissingAsset(Component):
    settings: Annotated[GameSettings | None, FindInAssets(), Path("Assets/Nowhere.asset")] = None


class KeepImage(Component):
    image: Annotated[Image | None, Get(), Sync(SyncMode.GET_IF_EMPTY)] = None


class FreshImage(Component):
    image: Annotated[Image | None, Get(), Sync(SyncMode.ALWAYS_GET_AND_VALIDATE)] = None


class CheckedImage(Component):
    image: Annotated[Image | None, Get(), Sync(SyncMode.VALIDATE_ONLY)] = None


class Healer(Component):
    image: Annotated[Image | None, Get()] = None
    hp: Annotated[int, Synced()] = 50

    @on_after_sync
    def heal(self):
        self.hp = 100


class Recorder(Component):
    image: Annotated[Image | None, Get()] = None

    def __init__(self):
        super().__init__()
        self.calls = []

    @on_after_sync
    def first(self):
        self.calls.append("first")

    @on_after_sync
    def second(self):
        self.calls.append("second")


class DerivedRecorder(Recorder):
    @on_after_sync
    def third(self):
        self.calls.append("third")


class CallbackOnly(Component):
    def __init__(self):
        super().__init__()
        self.count = 0

    @on_after_sync
    def bump(self):
        self.count += 1


class Exploding(Component):
    image: Annotated[Image | None, Get()] = None

    def __init__(self):
        super().__init__()
        self.survivor_ran = False

    @on_after_sync
    def explode(self):
        raise RuntimeError("boom")

    @on_after_sync
    def survivor(self):
        self.survivor_ran = True


class Reentrant(Component):
    image: Annotated[Image | None, Get()] = None

    def __init__(self, session=None):
        super().__init__()
        self.session = session
        self.nested_status = None
        self.was_validating = None

    @on_after_sync
    def resync(self):
        self.was_validating = self.session.is_after_sync_validating(self)
        self.nested_status = self.session.sync_component(self)


# Invalid declarations, one problem each


class TwoStrategies(Component):
    image: Annotated[Image | None, Get(), GetInChildren()] = None


class NotAComponent(Component):
    count: Annotated[int | None, Get()] = None


class NameOnAssets(Component):
    settings: Annotated[GameSettings | None, FindInAssets(), Path("Assets/Game.asset"), Name("Game")] = None


class PathOnGet(Component):
    image: Annotated[Image | None, Get(), Path("Assets/Image.asset")] = None


class MissingPath(Component):
    settings: Annotated[GameSettings | None, FindInAssets()] = None


class StringFromAssets(Component):
    title: Annotated[str | None, FindInAssets(), Path("Assets/Title.asset")] = None


class DuplicateNames(Component):
    image: Annotated[Image | None, Get(), Name("A"), Name("B")] = None


class FixedTuple(Component):
    pair: Annotated[tuple[Image, Label], Get()] = None


class FilterWithoutStrategy(Component):
    image: Annotated[Image | None, Name("Logo")] = None


class Broken(Component):
    wrong: Annotated[Image | None, Get(), GetInChildren()] = None
    image: Annotated[Image | None, Get()] = None


class Unresolvable(Component):
    thing: "Annotated[DoesNotExist | None, Get()]" = None  # noqa: F821


class BadCallbacks(Component):
    @on_after_sync
    def needs_argument(self, value):
        pass

    @on_after_sync
    @staticmethod
    def static():
        pass

    @on_after_sync
    def fine(self, optional=None):
        pass


class CheckedLabels(Component):
    labels: Annotated[list[Label], GetInChildren(), Sync(SyncMode.VALIDATE_ONLY)] = None


class Tuning:
    def __init__(self, speed=1):
        self.speed = speed


class Tuned(Component):
    tuning: Annotated[Tuning, Synced()] = None

    @on_after_sync
    def boost(self):
        self.tuning.speed = 2

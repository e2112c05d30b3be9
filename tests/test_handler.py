"""Tests for read/write/delete/define interception on defended objects."""

import weakref

import pytest

from bulwark import ABSENT, ProtectedMutationError, Settings, ViolationKind, use_engine
from bulwark.engine import EnforcementEngine, is_proxy
from tests.helpers.models import (
    Account,
    Bag,
    Deleting,
    HalfSlotted,
    Point,
    Point3D,
    Slotted,
    Thermometer,
    ViolationRecorder,
    WithFallback,
)


class TestRead:
    def test_existing_attributes_read_cleanly(self, engine, recorder):
        point = engine.new(Point, 1, 2)

        assert point.x == 1
        assert point.y == 2
        assert point.label is None
        assert recorder.violations == []

    def test_missing_read_returns_absent_and_reports_once(self, engine, recorder):
        point = engine.new(Point)

        assert point.nope is ABSENT
        assert recorder.kinds() == [ViolationKind.MISSING_READ]

        violation = recorder.violations[0]
        assert violation.keys == ("nope",)
        assert violation.subject == "Point"
        assert "'nope'" in violation.message
        assert "'Point'" in violation.message

    def test_getattr_default_is_not_used(self, engine, recorder):
        """Reads never raise, so a default passed to getattr() is never needed."""
        point = engine.new(Point)

        assert getattr(point, "nope", 5) is ABSENT
        assert len(recorder.violations) == 1

    def test_dunder_probe_is_silent(self, engine, recorder):
        point = engine.new(Point)

        assert not hasattr(point, "__html__")
        assert not hasattr(point, "__fspath__")
        assert recorder.violations == []

    def test_reserved_probe_is_silent(self, engine, recorder):
        point = engine.new(Point)

        assert not hasattr(point, "_repr_html_")
        assert recorder.violations == []

    def test_extra_reserved_keys(self):
        recorder = ViolationRecorder()
        engine = EnforcementEngine(
            Settings(extra_reserved_keys=frozenset({"then"}), schedule_reconcile=False),
            sink=recorder,
        )
        point = engine.new(Point)

        assert not hasattr(point, "then")
        assert recorder.violations == []

    def test_methods_bind_to_proxy(self, engine, recorder):
        point = engine.new(Point)
        point.move_to(3, -4)

        assert point.norm() == 7
        assert point.move_to.__self__ is point
        assert recorder.violations == []

    def test_method_internal_reads_are_checked(self, engine, recorder):
        class Broken(Point):
            def norm(self):
                return self.missing

        broken = engine.new(Broken)
        assert broken.norm() is ABSENT
        assert recorder.kinds() == [ViolationKind.MISSING_READ]

    def test_class_fallback_hook(self, engine, recorder):
        obj = engine.new(WithFallback)

        assert obj.known == 1
        assert obj.anything == "fallback:anything"
        assert recorder.violations == []

    def test_isinstance_and_class(self, engine):
        point = engine.new(Point)

        assert isinstance(point, Point)
        assert point.__class__ is Point
        assert type(point) is not Point
        assert is_proxy(point)

    def test_super_works_in_subclasses(self, engine, recorder):
        point = engine.new(Point3D, 1, 2, 3)

        assert (point.x, point.y, point.z) == (1, 2, 3)
        assert point.norm() == 6
        assert recorder.violations == []

    def test_dict_view_reflects_instance(self, engine):
        point = engine.new(Point, 1, 2)

        assert dict(vars(point)) == {"x": 1, "y": 2, "label": None}
        assert "x" in point.__dict__


class TestWrite:
    def test_same_kind_round_trip(self, engine, recorder):
        point = engine.new(Point)
        point.x = 42

        assert point.x == 42
        assert recorder.violations == []

    def test_type_change_is_discarded(self, engine, recorder):
        point = engine.new(Point, 1)
        point.x = "one"

        assert point.x == 1
        assert recorder.kinds() == [ViolationKind.TYPE_CHANGE]
        assert recorder.violations[0].message == \
            "Set 'number' property 'x' to type 'text' on defended object 'Point'"

    def test_optional_transitions(self, engine, recorder):
        point = engine.new(Point)

        point.label = "origin"
        point.label = None
        point.x = None
        point.x = 5

        assert point.label is None
        assert point.x == 5
        assert recorder.violations == []

    def test_writing_absent_is_rejected(self, engine, recorder):
        point = engine.new(Point, 1)
        point.x = ABSENT

        assert point.x == 1
        assert recorder.kinds() == [ViolationKind.TYPE_CHANGE]

    def test_new_attribute_is_discarded(self, engine, recorder):
        point = engine.new(Point)
        point.z = 1

        assert "z" not in vars(point)
        assert recorder.kinds() == [ViolationKind.MISSING_WRITE]
        assert recorder.violations[0].keys == ("z",)

    def test_method_write_is_checked(self, engine, recorder):
        point = engine.new(Point)
        point.move_to("left", 0)

        assert point.x == 0
        assert recorder.kinds() == [ViolationKind.TYPE_CHANGE]

    def test_shadowing_method_with_data_is_rejected(self, engine, recorder):
        point = engine.new(Point)
        point.norm = 3

        assert point.norm() == 0
        assert recorder.kinds() == [ViolationKind.TYPE_CHANGE]

    def test_property_setter_sees_proxy(self, engine, recorder):
        account = engine.new(Account, 10)

        account.balance = 20
        assert account.balance == 20

        account.balance = "lots"
        assert account.balance == 20
        assert recorder.kinds() == [ViolationKind.TYPE_CHANGE]
        assert recorder.violations[0].keys == ("_balance",)

    def test_slots(self, engine, recorder):
        slotted = engine.new(Slotted)

        slotted.a = 5
        slotted.b = 6

        assert (slotted.a, slotted.b) == (5, "two")
        assert recorder.kinds() == [ViolationKind.TYPE_CHANGE]

    def test_write_never_raises(self, engine):
        point = engine.new(Point)
        point.unknown = object()
        point.x = []

    def test_absent_to_missing_name_is_a_missing_write(self, engine, recorder):
        point = engine.new(Point)
        point.nope = ABSENT

        assert "nope" not in vars(point)
        assert recorder.kinds() == [ViolationKind.MISSING_WRITE]
        assert recorder.violations[0].message.startswith("Set non-existent property 'nope'")

    def test_read_only_property_write_is_reported(self, engine, recorder):
        thermometer = engine.new(Thermometer, 100)

        thermometer.fahrenheit = 0

        assert thermometer.fahrenheit == 212
        assert recorder.kinds() == [ViolationKind.READ_ONLY_WRITE]
        violation = recorder.violations[0]
        assert violation.keys == ("fahrenheit",)
        assert violation.message == \
            "Set read-only property 'fahrenheit' to 0 on defended object 'Thermometer'"

    def test_unset_slot_is_a_missing_name(self, engine, recorder):
        obj = engine.new(HalfSlotted)

        obj.spare = 2
        obj.filled = 3

        assert obj.filled == 3
        assert recorder.kinds() == [ViolationKind.MISSING_WRITE]
        assert recorder.violations[0].keys == ("spare",)


class TestDelete:
    def test_delete_raises_and_keeps_value(self, engine, recorder):
        point = engine.new(Point, 1)

        with pytest.raises(ProtectedMutationError, match="Cannot delete property 'x'"):
            del point.x

        assert point.x == 1
        assert recorder.violations == []

    def test_delete_missing_raises(self, engine):
        point = engine.new(Point)

        with pytest.raises(ProtectedMutationError):
            del point.nope

    def test_delete_is_an_attribute_error(self, engine):
        point = engine.new(Point)

        with pytest.raises(AttributeError):
            delattr(point, "y")

    def test_delete_during_construction_raises(self, engine):
        with pytest.raises(ProtectedMutationError):
            engine.new(Deleting)

        assert engine.pending_constructions == 0

    def test_delete_through_namespace_raises(self, engine):
        point = engine.new(Point, 1)

        with pytest.raises(ProtectedMutationError):
            del vars(point)["x"]

        assert point.x == 1


class TestDefine:
    def test_namespace_assignment_raises(self, engine):
        point = engine.new(Point)

        with pytest.raises(ProtectedMutationError, match="Cannot define property 'z'"):
            point.__dict__["z"] = 1

        assert "z" not in vars(point)

    def test_namespace_update_raises(self, engine):
        point = engine.new(Point, 1)

        with pytest.raises(ProtectedMutationError):
            vars(point).update(x=2)

        assert point.x == 1

    def test_class_reassignment_raises(self, engine):
        point = engine.new(Point)

        with pytest.raises(ProtectedMutationError):
            point.__class__ = Point3D

        assert point.__class__ is Point

    def test_namespace_replacement_raises(self, engine):
        point = engine.new(Point, 1)

        with pytest.raises(ProtectedMutationError):
            point.__dict__ = {}

        assert point.x == 1


class TestSpecialMethods:
    def test_container_protocols_forwarded(self, engine, recorder):
        bag = engine.new(Bag, 1, 2, 3)

        assert len(bag) == 3
        assert list(bag) == [1, 2, 3]
        assert 2 in bag
        assert bag[0] == 1
        assert repr(bag) == "Bag([1, 2, 3])"
        assert recorder.violations == []

    def test_equality_forwarded(self, engine):
        assert engine.new(Bag, 1) == engine.new(Bag, 1)
        assert engine.new(Bag, 1) != engine.new(Bag, 2)

    def test_hash_follows_class(self, engine):
        bag = engine.new(Bag)
        point = engine.new(Point)

        with pytest.raises(TypeError):
            hash(bag)
        assert {point: 1}[point] == 1

    def test_default_repr_names_class(self, engine):
        assert "Point object" in repr(engine.new(Point))

    def test_dir_lists_attributes(self, engine):
        point = engine.new(Point)

        assert {"x", "y", "label", "move_to"} <= set(dir(point))

    def test_module_level_api_uses_active_engine(self, engine, recorder):
        from bulwark import new

        point = new(Point)
        point.nope

        assert recorder.kinds() == [ViolationKind.MISSING_READ]

    def test_other_engine_isolated(self, engine, recorder):
        other_recorder = ViolationRecorder()
        other = EnforcementEngine(Settings(schedule_reconcile=False), sink=other_recorder)

        with use_engine(other):
            point = other.new(Point)
        point.nope

        assert recorder.violations == []
        assert other_recorder.kinds() == [ViolationKind.MISSING_READ]

    def test_weak_references(self, engine):
        point = engine.new(Point)
        ref = weakref.ref(point)

        assert ref() is point

    def test_released_special_methods_reported(self, engine, recorder):
        bag = engine.new(Bag, 1, 2)
        engine.release(bag)

        assert len(bag) == 2
        assert recorder.violations[0].kind is ViolationKind.RELEASED_READ
        assert recorder.violations[0].keys == ("__len__",)

        recorder.clear()
        assert bag[0] == 1
        assert ("__getitem__",) in [violation.keys for violation in recorder.violations]

    def test_released_default_repr_is_silent(self, engine, recorder):
        point = engine.new(Point)
        engine.release(point)

        repr(point)
        assert recorder.violations == []

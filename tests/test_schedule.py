from docplan.editops import EditPlan, Modify, Insert, Delete, Move
from docplan.schedule import schedule


def test_phases_run_modify_then_insert_then_destructive():
    plan = EditPlan(actions=(
        Delete(target_sequential_number=1, plan_index=0),
        Modify(target_sequential_number=2, new_content="X", plan_index=1),
        Insert(after_sequential_number=0, new_content="N", plan_index=2),
        Delete(target_sequential_number=3, plan_index=3),
    ), generation="g1")
    scheduled = schedule(plan)

    assert [p.name for p in scheduled] == ["modify", "insert", "destructive"]
    assert scheduled.modify.actions == (plan.actions[1],)
    assert scheduled.insert.actions == (plan.actions[2],)
    assert [a.plan_index for a in scheduled.destructive.actions] == [3, 0]
    assert scheduled.generation == "g1"


def test_delete_and_move_share_descending_order():
    plan = EditPlan(actions=(
        Delete(target_sequential_number=1, plan_index=0),
        Move(from_sequential_number=4, to_after_sequential_number=2, plan_index=1),
        Delete(target_sequential_number=3, plan_index=2),
        Move(from_sequential_number=2, to_after_sequential_number=5, plan_index=3),
    ), generation="g1")
    order = [a.plan_index for a in schedule(plan).destructive.actions]
    assert order == [1, 2, 3, 0]


def test_duplicate_sources_keep_plan_order():
    first = Delete(target_sequential_number=2, plan_index=0)
    second = Delete(target_sequential_number=2, plan_index=1)
    scheduled = schedule(EditPlan(actions=(first, second), generation="g1"))
    assert scheduled.destructive.actions == (first, second)


def test_empty_plan_has_three_empty_phases():
    scheduled = schedule(EditPlan(actions=(), generation="g1"))
    assert [len(p) for p in scheduled] == [0, 0, 0]
    assert scheduled.ordered_actions() == []

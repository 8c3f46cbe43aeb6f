from motionlab.tracking.track import Project, Track


def test_sorted_points_orders_by_time_and_keeps_ties_stable():
    track = Track("Object A")
    late = track.add_point(3.0, 0.0, 1.0)
    first = track.add_point(1.0, 0.0, 0.5)
    second = track.add_point(2.0, 0.0, 0.5)
    assert [p.id for p in track.points] == [late.id, first.id, second.id]
    assert [p.id for p in track.sorted_points()] == [first.id, second.id, late.id]


def test_move_keeps_time_and_ids_continue_after_seed():
    track = Track("Object A")
    p = track.add_point(1.0, 2.0, 0.25)
    moved = track.move_point(p.id, 4.0, 5.0)
    assert (moved.x, moved.y, moved.time) == (4.0, 5.0, 0.25)
    assert track.move_point(999, 0.0, 0.0) is None

    reseeded = Track("copy", track.points)
    assert reseeded.add_point(0.0, 0.0, 1.0).id == p.id + 1


def test_project_tracks():
    project = Project()
    assert project.track("Object B", create=False) is None
    project.track("Object B").add_point(0.0, 0.0, 0.0)
    assert len(project.tracks["Object B"]) == 1
    assert project.remove_track("Object B")
    assert not project.remove_track("Object B")

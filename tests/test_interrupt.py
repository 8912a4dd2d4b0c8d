from pygba.interrupt import InterruptController


def test_fresh_controller_has_everything_cleared():
    ic = InterruptController()
    assert (ic.ime, ic.ie, ic.if_) == (0, 0, 0)


def test_keyword_construction_keeps_values():
    ic = InterruptController(ime=1, ie=0x3FFF, if_=0x0002)
    assert ic.ime == 1
    assert ic.ie == 0x3FFF
    assert ic.if_ == 0x0002


def test_instances_are_independent():
    first = InterruptController()
    second = InterruptController()
    first.ie = 0x00FF
    assert second.ie == 0
    assert first != second


def test_equal_state_compares_equal():
    assert InterruptController(1, 2, 3) == InterruptController(ime=1, ie=2, if_=3)
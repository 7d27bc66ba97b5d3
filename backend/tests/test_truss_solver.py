from __future__ import annotations

import math

from pydantic import ValidationError
from pytest import approx, mark, raises

from truss_solver_backend.schemas.truss import Fixture, LoadCase, SolveOptions, Support, TrussModel
from truss_solver_backend.solver.errors import (
    InvalidModelError,
    SingularSystemError,
    SolveErrorKind,
)
from truss_solver_backend.solver.truss_solver import solve_truss, try_solve

G = 9.81


def _truss(**overrides) -> TrussModel:
    """Build a 10 m truss with the reference datasheet values unless overridden."""
    values = dict(id="T10", name="Reference truss", length_m=10.0, ei_nm2=5e6, self_weight_kgm=5.0)
    values.update(overrides)
    return TrussModel(**values)


def _end_supports(length: float = 10.0):
    """Rigging points at both ends of the span."""
    return [Support(position_m=0.0), Support(position_m=length)]


def _total_load(truss: TrussModel, load_case: LoadCase, support_count: int) -> float:
    total = truss.self_weight_kgm * load_case.gravity * truss.length_m
    if load_case.include_motor_weight:
        total += load_case.motor_weight_kg_each * support_count * load_case.gravity
    for fixture in load_case.fixtures:
        total += fixture.quantity * fixture.weight_kg * load_case.gravity * load_case.dynamic_factor
    return total


def test_reference_span_under_self_weight():
    """A 10 m simply supported truss matches the closed-form UDL results."""
    result = solve_truss(_truss(), LoadCase(), SolveOptions(supports=_end_supports()))

    q = 5.0 * G
    assert result.support_reactions_n == approx([245.25, 245.25], rel=1e-6)
    assert result.support_reactions_kg == approx([25.0, 25.0], rel=1e-6)
    assert result.max_moment_nm == approx(q * 10.0**2 / 8.0, rel=1e-2)
    assert result.max_moment_nm == approx(613.125, rel=1e-6)
    assert result.max_deflection_m > 0
    assert result.max_deflection_m == approx(5 * q * 10.0**4 / (384 * 5e6), rel=1e-6)
    assert result.support_labels == ["H1", "H2"]
    assert len(result.x_nodes_m) == 25
    assert len(result.deflections_m) == 25


def test_symmetric_two_support_beam_splits_self_weight():
    """Equal end supports under pure self-weight carry half the weight each."""
    truss = _truss(length_m=8.0, self_weight_kgm=12.5)
    result = solve_truss(truss, LoadCase(), SolveOptions(supports=_end_supports(8.0)))

    left, right = result.support_reactions_n
    assert left == approx(right, rel=1e-9)
    assert left == approx(12.5 * 8.0 * G / 2.0, rel=1e-6)


def test_equilibrium_with_fixtures_motors_and_tilt():
    """Reactions sum to the total applied load for an indeterminate, tilted truss."""
    truss = _truss()
    load_case = LoadCase(
        fixtures=[
            Fixture(position_m=2.3, weight_kg=20.0, quantity=3, name="SUNSTRIP"),
            Fixture(position_m=7.1, weight_kg=40.0, quantity=2, name="ROBE BMFL BLADE"),
            Fixture(position_m=7.1, weight_kg=24.0, quantity=1),
        ],
        include_motor_weight=True,
        motor_weight_kg_each=25.0,
    )
    options = SolveOptions(
        supports=[Support(position_m=1.0), Support(position_m=5.0), Support(position_m=9.0)],
        tilt_deg=2.0,
    )

    result = solve_truss(truss, load_case, options)

    assert sum(result.support_reactions_n) == approx(_total_load(truss, load_case, 3), rel=1e-6)
    assert sum(result.support_reactions_kg) == approx(_total_load(truss, load_case, 3) / G, rel=1e-6)


def test_smeared_motor_weight_adds_to_reactions():
    """Smeared motor weight adds one motor per rigging point to the total load."""
    plain = solve_truss(_truss(), LoadCase(), SolveOptions(supports=_end_supports()))
    smeared = solve_truss(
        _truss(),
        LoadCase(include_motor_weight=True, motor_weight_kg_each=60.0),
        SolveOptions(supports=_end_supports()),
    )

    increase = sum(smeared.support_reactions_n) - sum(plain.support_reactions_n)
    assert increase == approx(2 * 60.0 * G, rel=1e-6)


def test_motor_weight_ignored_unless_requested():
    """Motor weight only counts when the load case asks for it."""
    plain = solve_truss(_truss(), LoadCase(), SolveOptions(supports=_end_supports()))
    flagged_off = solve_truss(
        _truss(), LoadCase(motor_weight_kg_each=60.0), SolveOptions(supports=_end_supports())
    )

    assert flagged_off.support_reactions_n == approx(plain.support_reactions_n, rel=1e-9)


def test_midspan_point_load_moment():
    """A central fixture on a weightless truss gives the PL/4 moment with the dynamic factor."""
    truss = _truss(self_weight_kgm=0.0)
    load_case = LoadCase(fixtures=[Fixture(position_m=5.0, weight_kg=50.0, quantity=2)])

    result = solve_truss(truss, load_case, SolveOptions(supports=_end_supports()))

    force = 2 * 50.0 * G * 1.2
    assert result.support_reactions_n == approx([force / 2, force / 2], rel=1e-6)
    assert result.max_moment_nm == approx(force * 10.0 / 4.0, rel=1e-6)


def test_point_load_snaps_to_nearest_node():
    """A fixture just off a node is applied at that node."""
    truss = _truss(self_weight_kgm=0.0)
    on_node = solve_truss(
        truss,
        LoadCase(fixtures=[Fixture(position_m=5.0, weight_kg=30.0)]),
        SolveOptions(supports=_end_supports()),
    )
    off_node = solve_truss(
        truss,
        LoadCase(fixtures=[Fixture(position_m=5.1, weight_kg=30.0)]),
        SolveOptions(supports=_end_supports()),
    )

    assert off_node.support_reactions_n == approx(on_node.support_reactions_n, rel=1e-9)


def test_two_span_continuous_truss_reactions():
    """Three equally spaced rigging points reproduce the continuous-beam coefficients."""
    truss = _truss()
    options = SolveOptions(
        supports=[Support(position_m=0.0), Support(position_m=5.0), Support(position_m=10.0)]
    )

    result = solve_truss(truss, LoadCase(), options)

    ql = 5.0 * G * 5.0
    assert result.support_reactions_n == approx([0.375 * ql, 1.25 * ql, 0.375 * ql], rel=1e-6)
    assert result.max_moment_nm == approx(5.0 * G * 5.0**2 / 8.0, rel=1e-6)


def test_tilt_keeps_equilibrium_and_reactions_monotonic():
    """Raising the far support never increases its reaction and keeps the total."""
    truss = _truss()
    load_case = LoadCase(fixtures=[Fixture(position_m=3.0, weight_kg=40.0, quantity=2)])
    total = _total_load(truss, load_case, 2)

    results = [
        solve_truss(truss, load_case, SolveOptions(supports=_end_supports(), tilt_deg=tilt))
        for tilt in (0.0, 1.0, 2.5, 5.0, 10.0)
    ]

    tol = 1e-6 * total
    for before, after in zip(results, results[1:]):
        assert after.support_reactions_n[1] <= before.support_reactions_n[1] + tol
        assert after.support_reactions_n[0] >= before.support_reactions_n[0] - tol
    for result in results:
        assert sum(result.support_reactions_n) == approx(total, rel=1e-6)


def test_tilt_prescribes_support_displacements():
    """Supports follow a straight line through the first support."""
    result = solve_truss(_truss(), LoadCase(), SolveOptions(supports=_end_supports(), tilt_deg=5.0))

    assert result.deflections_m[0] == approx(0.0, abs=1e-12)
    assert result.deflections_m[-1] == approx(math.tan(math.radians(5.0)) * 10.0, rel=1e-9)


def test_tilt_pivots_on_first_support():
    """The first support stays level even when it is not the leftmost one."""
    options = SolveOptions(supports=[Support(position_m=10.0), Support(position_m=0.0)], tilt_deg=3.0)

    result = solve_truss(_truss(), LoadCase(), options)

    assert result.deflections_m[-1] == approx(0.0, abs=1e-12)
    assert result.deflections_m[0] == approx(-math.tan(math.radians(3.0)) * 10.0, rel=1e-9)


def test_allowable_flags():
    """Allowable checks are None when unset and booleans otherwise."""
    unchecked = solve_truss(_truss(), LoadCase(), SolveOptions(supports=_end_supports()))
    assert unchecked.ok_against_allowables.moment is None
    assert unchecked.ok_against_allowables.deflection is None

    passing = solve_truss(
        _truss(allowable_moment_nm=5000.0, allowable_deflection_m=0.05),
        LoadCase(),
        SolveOptions(supports=_end_supports()),
    )
    assert passing.ok_against_allowables.moment is True
    assert passing.ok_against_allowables.deflection is True

    failing = solve_truss(
        _truss(allowable_moment_nm=500.0, allowable_deflection_m=0.001),
        LoadCase(),
        SolveOptions(supports=_end_supports()),
    )
    assert failing.ok_against_allowables.moment is False
    assert failing.ok_against_allowables.deflection is False


def test_element_count_floor():
    """Coarse meshes are raised to eight elements and reported."""
    result = solve_truss(_truss(), LoadCase(), SolveOptions(supports=_end_supports(), n_elements=4))

    assert result.meta.n_elements == 8
    assert len(result.x_nodes_m) == 9
    assert any("raised" in warning for warning in result.meta.validation_warnings)


def test_support_labels_are_kept():
    options = SolveOptions(supports=[Support(position_m=0.5, label="SL"), Support(position_m=9.5)])
    result = solve_truss(_truss(), LoadCase(), options)

    assert result.support_labels == ["SL", "H2"]


def test_supports_sharing_a_node_split_reaction():
    """Two rigging points snapped to one node share its reaction evenly."""
    truss = _truss()
    options = SolveOptions(
        supports=[
            Support(position_m=0.0),
            Support(position_m=5.0),
            Support(position_m=5.05),
            Support(position_m=10.0),
        ]
    )

    result = solve_truss(truss, LoadCase(), options)
    reactions = result.support_reactions_n

    assert reactions[1] == approx(reactions[2], rel=1e-12)
    assert sum(reactions) == approx(5.0 * G * 10.0, rel=1e-6)
    assert any("share mesh node" in warning for warning in result.meta.validation_warnings)


def test_zero_ei_is_invalid():
    with raises(InvalidModelError):
        solve_truss(_truss(ei_nm2=0.0), LoadCase(), SolveOptions(supports=_end_supports()))


def test_negative_ei_is_invalid():
    with raises(InvalidModelError):
        solve_truss(_truss(ei_nm2=-1.0), LoadCase(), SolveOptions(supports=_end_supports()))


def test_non_positive_element_count_is_invalid():
    with raises(InvalidModelError):
        solve_truss(_truss(), LoadCase(), SolveOptions(supports=_end_supports(), n_elements=0))


def test_fixture_outside_span_is_invalid():
    load_case = LoadCase(fixtures=[Fixture(position_m=12.0, weight_kg=10.0)])
    with raises(InvalidModelError):
        solve_truss(_truss(), load_case, SolveOptions(supports=_end_supports()))


def test_single_support_is_singular():
    """One rigging point leaves the truss free to rotate."""
    with raises(SingularSystemError):
        solve_truss(_truss(), LoadCase(), SolveOptions(supports=[Support(position_m=5.0)]))


def test_coincident_supports_are_singular():
    options = SolveOptions(supports=[Support(position_m=4.0), Support(position_m=4.0)])
    with raises(SingularSystemError):
        solve_truss(_truss(), LoadCase(), options)


def test_no_supports_is_singular():
    with raises(SingularSystemError):
        solve_truss(_truss(), LoadCase(), SolveOptions())


def test_try_solve_returns_tagged_outcome():
    """Failures come back as values carrying their kind."""
    good = try_solve(_truss(), LoadCase(), SolveOptions(supports=_end_supports()))
    assert good.ok
    assert good.kind is None
    assert good.result.support_reactions_n == approx([245.25, 245.25], rel=1e-6)

    invalid = try_solve(_truss(ei_nm2=0.0), LoadCase(), SolveOptions(supports=_end_supports()))
    assert not invalid.ok
    assert invalid.result is None
    assert invalid.kind is SolveErrorKind.INVALID_MODEL

    singular = try_solve(_truss(), LoadCase(), SolveOptions(supports=[Support(position_m=5.0)]))
    assert singular.kind is SolveErrorKind.SINGULAR_SYSTEM
    assert "support configuration" in str(singular.error)


def test_non_finite_ei_is_invalid():
    """Unvalidated models carrying NaN stiffness are rejected before assembly."""
    truss = TrussModel.model_construct(id="T10", name="", length_m=10.0, ei_nm2=float("nan"), self_weight_kgm=5.0)

    with raises(InvalidModelError):
        solve_truss(truss, LoadCase(), SolveOptions(supports=_end_supports()))


@mark.parametrize(
    "load_case",
    [
        LoadCase.model_construct(gravity=float("inf")),
        LoadCase.model_construct(dynamic_factor=float("nan")),
        LoadCase.model_construct(fixtures=[Fixture.model_construct(position_m=5.0, weight_kg=float("nan"), quantity=1)]),
    ],
)
def test_non_finite_load_case_is_invalid(load_case):
    with raises(InvalidModelError):
        solve_truss(_truss(), load_case, SolveOptions(supports=_end_supports()))


def test_schema_rejects_non_finite_numbers():
    with raises(ValidationError):
        TrussModel(length_m=10.0, ei_nm2=float("nan"))
    with raises(ValidationError):
        LoadCase(gravity=float("inf"))


def test_fine_mesh_with_long_overhang_solves():
    """Two close rigging points carry a 9 m overhang at a fine mesh."""
    options = SolveOptions(supports=[Support(position_m=0.0), Support(position_m=1.0)], n_elements=800)

    result = solve_truss(_truss(), LoadCase(), options)

    total = 5.0 * G * 10.0
    assert result.meta.n_elements == 800
    assert sum(result.support_reactions_n) == approx(total, rel=1e-3)
    assert result.support_reactions_n == approx([total * (1.0 - 5.0), total * 5.0], rel=1e-3)


def test_fine_mesh_overhang_matches_mirrored_layout():
    left = solve_truss(
        _truss(), LoadCase(), SolveOptions(supports=[Support(position_m=0.0), Support(position_m=1.0)], n_elements=800)
    )
    right = solve_truss(
        _truss(), LoadCase(), SolveOptions(supports=[Support(position_m=10.0), Support(position_m=9.0)], n_elements=800)
    )

    assert left.support_reactions_n == approx(right.support_reactions_n, rel=1e-3)

"""Smoke tests to verify package imports work."""

def test_package_imports():
    """Test that all main entry points can be imported."""
    from kepuni import propagate, PropagationResult, UniversalPropagator, Trajectory
    assert propagate is not None
    assert PropagationResult is not None
    assert UniversalPropagator is not None
    assert Trajectory is not None

def test_version_exists():
    """Test that version is defined."""
    import kepuni
    assert hasattr(kepuni, '__version__')
    assert kepuni.__version__ == "0.1.0"

def test_can_propagate_single_orbit():
    """Test basic propagation of one state."""
    from kepuni import propagate
    r, v = propagate([7000.0, 0.0, 0.0], [0.0, 7.546, 0.0], 60.0)
    assert r.shape == (3, 1)
    assert v.shape == (3, 1)

def test_can_create_propagator():
    """Test basic UniversalPropagator creation."""
    from kepuni import UniversalPropagator, EARTH
    prop = UniversalPropagator(EARTH)
    assert prop.mu == 398600.4418

def test_default_mu_matches_earth():
    """Default gravitational parameter is Earth's."""
    from kepuni import config, EARTH
    assert config.DEFAULT_MU == EARTH.mu

def test_body_radius_optional():
    """A body may be defined by its gravitational parameter alone."""
    import pytest
    from kepuni import BodyParams
    assert BodyParams(mu=1.0).radius is None
    with pytest.raises(ValueError):
        BodyParams(mu=1.0, radius=-5.0)

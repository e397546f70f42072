"""Tests for ParameterBlock / ParameterSet flattening."""

import math

import numpy as np
import pytest

from pynec.density import (
    DimensionError,
    DomainError,
    Identity,
    LowerBound,
    MissingFieldError,
    Normal,
    ParameterBlock,
    ParameterSet,
)


@pytest.fixture
def pset():
    return ParameterSet([
        ParameterBlock("b_top", 2, Identity(), Normal(2.0, 100.0)),
        ParameterBlock("b_slope", 1, LowerBound(0.0), Normal(0.0, 100.0)),
        ParameterBlock("sigma", 1, LowerBound(0.0), scalar=True),
    ])


class TestLayout:

    def test_size(self, pset):
        assert pset.size == 4
        assert len(pset) == 3

    def test_names_in_declaration_order(self, pset):
        assert [str(label) for label in pset.names()] == [
            "b_top.1", "b_top.2", "b_slope.1", "sigma",
        ]

    def test_label_fields(self, pset):
        labels = pset.names()
        assert labels[1].block == "b_top"
        assert labels[1].index == 2
        assert labels[-1].index is None

    def test_dims(self, pset):
        assert pset.dims() == {"b_top": (2,), "b_slope": (1,), "sigma": ()}

    def test_lookup(self, pset):
        assert pset["b_slope"].size == 1
        with pytest.raises(KeyError):
            pset["nope"]

    def test_duplicate_names(self):
        with pytest.raises(ValueError, match="unique"):
            ParameterSet([ParameterBlock("a", 1), ParameterBlock("a", 2)])

    def test_empty_block(self):
        with pytest.raises(DimensionError, match=">= 1"):
            ParameterBlock("a", 0)

    def test_scalar_block_size(self):
        with pytest.raises(DimensionError, match="size 1"):
            ParameterBlock("sigma", 2, scalar=True)


class TestConstrain:

    def test_slices_in_order(self, pset):
        u = np.array([1.0, -2.0, 0.0, math.log(3.0)])
        values, _ = pset.constrain(u)
        np.testing.assert_allclose(values["b_top"], [1.0, -2.0])
        np.testing.assert_allclose(values["b_slope"], [1.0])
        assert values["sigma"].shape == ()
        assert float(values["sigma"]) == pytest.approx(3.0)

    def test_total_jacobian(self, pset):
        u = np.array([1.0, -2.0, 0.5, -0.25])
        _, log_jac = pset.constrain(u, jacobian=True)
        assert log_jac == pytest.approx(0.25)

    def test_no_jacobian(self, pset):
        _, log_jac = pset.constrain(np.zeros(4))
        assert log_jac == 0.0

    def test_accepts_list(self, pset):
        values, _ = pset.constrain([0.0, 0.0, 0.0, 0.0])
        np.testing.assert_allclose(values.to_array(), [0.0, 0.0, 1.0, 1.0])

    @pytest.mark.parametrize("length", [0, 3, 5])
    def test_wrong_length(self, pset, length):
        with pytest.raises(DimensionError, match="length 4"):
            pset.constrain(np.zeros(length))

    def test_two_dimensional_rejected(self, pset):
        with pytest.raises(DimensionError):
            pset.constrain(np.zeros((2, 2)))


class TestUnconstrain:

    def test_round_trip(self, pset):
        init = {"b_top": [1.5, -0.5], "b_slope": [0.2], "sigma": 2.0}
        u = pset.unconstrain(init)
        values, _ = pset.constrain(u)
        np.testing.assert_allclose(values["b_top"], [1.5, -0.5], rtol=1e-9)
        np.testing.assert_allclose(values["b_slope"], [0.2], rtol=1e-9)
        assert float(values["sigma"]) == pytest.approx(2.0, rel=1e-9)

    def test_missing_block(self, pset):
        with pytest.raises(MissingFieldError, match="sigma missing") as exc_info:
            pset.unconstrain({"b_top": [1.0, 1.0], "b_slope": [1.0]})
        assert exc_info.value.block == "sigma"

    def test_negative_sigma(self, pset):
        with pytest.raises(DomainError, match="sigma") as exc_info:
            pset.unconstrain({"b_top": [1.0, 1.0], "b_slope": [1.0], "sigma": -1.0})
        assert exc_info.value.block == "sigma"

    def test_wrong_size(self, pset):
        with pytest.raises(DimensionError) as exc_info:
            pset.unconstrain({"b_top": [1.0], "b_slope": [1.0], "sigma": 1.0})
        assert exc_info.value.block == "b_top"

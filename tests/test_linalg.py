"""
Tests for linalg module.
"""

import pytest
import numpy as np
import sys
sys.path.append('..')

from tensorview import linalg
from tensorview.dimensions import Dimensions
from tensorview.tensor import RTensor, CTensor
from tensorview.exceptions import DegenerateInputError, InvalidRangeError, SizeMismatchError


class TestEigSym:
    """Test cases for symmetric eigenvalue problems."""

    def test_eigenvalues(self):
        """Test a diagonalisable symmetric matrix."""
        a = RTensor([[2.0, 1.0], [1.0, 2.0]])
        values = linalg.eig_sym(a)
        assert isinstance(values, RTensor)
        assert values.raw_buffer().tolist() == pytest.approx([1.0, 3.0])

    def test_eigenvectors(self, rng):
        """Test A V = V diag(values) for a random symmetric matrix."""
        m = rng.random((4, 4))
        a = RTensor(m + m.T)
        values, vectors = linalg.eig_sym(a, vectors=True)
        v = vectors.as_array()
        assert np.allclose(a.as_array() @ v, v * values.raw_buffer())

    def test_hermitian(self):
        """Test complex Hermitian input gives real eigenvalues."""
        a = CTensor([[2.0, 1j], [-1j, 2.0]])
        values = linalg.eig_sym(a)
        assert isinstance(values, RTensor)
        assert values.raw_buffer().tolist() == pytest.approx([1.0, 3.0])


class TestEig:
    """Test cases for general eigenvalue problems."""

    def test_rotation_has_complex_eigenvalues(self):
        """Test a rotation by 90 degrees."""
        a = RTensor([[0.0, -1.0], [1.0, 0.0]])
        values = linalg.eig(a)
        assert isinstance(values, CTensor)
        assert sorted(values.raw_buffer().tolist(), key=lambda z: z.imag) == pytest.approx([-1j, 1j])

    def test_eigenvectors(self, rng):
        """Test A V = V diag(values)."""
        a = RTensor(rng.random((3, 3)))
        values, vectors = linalg.eig(a, vectors=True)
        v = vectors.as_array()
        assert np.allclose(a.as_array() @ v, v * values.raw_buffer())


class TestSVD:
    """Test cases for the singular value decomposition."""

    def test_full_decomposition(self, rng):
        """Test U diag(s) V reconstructs the matrix."""
        a = RTensor(rng.random((4, 3)))
        u, s, v = linalg.svd(a)
        assert u.dimensions == Dimensions(4, 4)
        assert v.dimensions == Dimensions(3, 3)
        sigma = np.zeros((4, 3))
        sigma[:3, :3] = np.diag(s.raw_buffer())
        assert np.allclose(u.as_array() @ sigma @ v.as_array(), a.as_array())

    def test_economic(self, rng):
        """Test the reduced factors."""
        a = RTensor(rng.random((5, 2)))
        u, s, v = linalg.svd(a, economic=True)
        assert u.dimensions == Dimensions(5, 2)
        assert s.dimensions == Dimensions(2)
        assert v.dimensions == Dimensions(2, 2)
        assert np.allclose(u.as_array() @ np.diag(s.raw_buffer()) @ v.as_array(), a.as_array())
        values = s.raw_buffer()
        assert values[0] >= values[1]

    def test_view_input(self):
        """Test decompositions accept views."""
        a = RTensor([[3.0, 0.0, 9.0], [0.0, 4.0, 9.0]])
        _, s, _ = linalg.svd(a[:, 0:2], economic=True)
        assert s.raw_buffer().tolist() == pytest.approx([4.0, 3.0])


class TestPreconditions:
    """Test cases for rejected inputs."""

    def test_rank(self):
        """Test non-matrix input."""
        with pytest.raises(InvalidRangeError):
            linalg.eig_sym(RTensor([1.0, 2.0]))

    def test_square(self):
        """Test rectangular input to eigen solvers."""
        with pytest.raises(SizeMismatchError):
            linalg.eig(RTensor.zeros(2, 3))

    def test_empty(self):
        """Test zero-size matrices."""
        with pytest.raises(DegenerateInputError):
            linalg.svd(RTensor.zeros(0, 3))
        with pytest.raises(DegenerateInputError):
            linalg.eig_sym(RTensor.zeros(0, 0))


if __name__ == "__main__":
    pytest.main([__file__])

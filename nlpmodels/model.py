#  ___________________________________________________________________________
#
#  Pyomo: Python Optimization Modeling Objects
#  Copyright (c) 2008-2025
#  National Technology and Engineering Solutions of Sandia, LLC
#  Under the terms of Contract DE-NA0003525 with National Technology and
#  Engineering Solutions of Sandia, LLC, the U.S. Government retains certain
#  rights in this software.
#  This software is distributed under the 3-clause BSD License.
#  ___________________________________________________________________________
"""The evaluation contract shared by all NLP models.

Every model exposes its :py:class:`~nlpmodels.meta.NLPModelMeta` as
``model.meta`` and its evaluation tally as ``model.counters``.  Dense
results (gradient, constraints and the Jacobian / Hessian products)
accept an optional ``out`` buffer; when it is given the result is
written into it and returned, otherwise a new array is returned.  The
two forms produce identical values.  Sparse results are returned in
coordinate format as ``(rows, cols, vals)`` with 0-based indices; the
``(rows, cols)`` pattern of a model never changes between calls.
"""

from nlpmodels.dependencies import numpy as np, scipy
from nlpmodels.errors import DimensionError, UnsupportedOperationError


def check_vector(v, size, label):
    """Return ``v`` as a float array, verifying it holds ``size`` entries"""
    v = np.asarray(v, dtype=float)
    if v.shape != (size,):
        raise DimensionError(
            "'%s' has shape %s, but the model expects (%s,)" % (label, v.shape, size)
        )
    return v


def check_out(out, size, label='out'):
    """Verify a caller-supplied output buffer (or allocate one)"""
    if out is None:
        return np.empty(size, dtype=float)
    if not isinstance(out, np.ndarray) or out.shape != (size,):
        raise DimensionError(
            "Output buffer '%s' must be a numpy array of shape (%s,) (got %s)"
            % (label, size, getattr(out, 'shape', type(out).__name__))
        )
    return out


def check_multipliers(y, ncon):
    if y is None:
        return np.zeros(ncon)
    return check_vector(y, ncon, 'y')


class AbstractNLPModel(object):
    """Base class for the models implementing the evaluation contract.

    Subclasses set ``self.meta`` and ``self.counters`` and override the
    evaluations they support.  The base implementation of each
    evaluation raises :py:class:`UnsupportedOperationError`.
    """

    meta = None
    counters = None

    @property
    def name(self):
        return self.meta.name

    def __str__(self):
        return str(self.meta)

    #
    # Evaluation counters
    #
    def reset(self):
        """Reset the evaluation counters of this model"""
        self.counters.reset()
        return self

    def neval_obj(self):
        return self.counters.neval_obj

    def neval_grad(self):
        return self.counters.neval_grad

    def neval_cons(self):
        return self.counters.neval_cons

    def neval_jac(self):
        return self.counters.neval_jac

    def neval_jprod(self):
        return self.counters.neval_jprod

    def neval_jtprod(self):
        return self.counters.neval_jtprod

    def neval_hess(self):
        return self.counters.neval_hess

    def neval_hprod(self):
        return self.counters.neval_hprod

    #
    # Objective
    #
    def obj(self, x):
        """Evaluate the objective function at ``x``"""
        raise UnsupportedOperationError('obj', self)

    def grad(self, x, out=None):
        """Evaluate the objective gradient at ``x``"""
        raise UnsupportedOperationError('grad', self)

    #
    # Constraints
    #
    def cons(self, x, out=None):
        """Evaluate the constraint functions at ``x``"""
        raise UnsupportedOperationError('cons', self)

    def jac_structure(self):
        """Return the ``(rows, cols)`` sparsity pattern of the Jacobian"""
        raise UnsupportedOperationError('jac_structure', self)

    def jac_coord(self, x):
        """Evaluate the constraint Jacobian at ``x`` in coordinate format"""
        raise UnsupportedOperationError('jac_coord', self)

    def jac(self, x):
        """Evaluate the constraint Jacobian at ``x`` as a sparse matrix

        Returns
        -------
        scipy.sparse.coo_matrix
            A ``(ncon, nvar)`` matrix
        """
        rows, cols, vals = self.jac_coord(x)
        return scipy.sparse.coo_matrix(
            (vals, (rows, cols)), shape=(self.meta.ncon, self.meta.nvar)
        )

    def jprod(self, x, v, out=None):
        """Evaluate the Jacobian-vector product :math:`J(x) v`"""
        raise UnsupportedOperationError('jprod', self)

    def jtprod(self, x, v, out=None):
        """Evaluate the transposed-Jacobian-vector product :math:`J(x)^T v`"""
        raise UnsupportedOperationError('jtprod', self)

    #
    # Lagrangian Hessian
    #
    def hess_structure(self):
        """Return the ``(rows, cols)`` pattern of the Hessian lower triangle"""
        raise UnsupportedOperationError('hess_structure', self)

    def hess_coord(self, x, obj_weight=1.0, y=None):
        """Evaluate the lower triangle of the Lagrangian Hessian

        The Lagrangian Hessian is :math:`\\sigma \\nabla^2 f(x) + \\sum_j
        y_j \\nabla^2 c_j(x)`, where :math:`\\sigma` is ``obj_weight``.
        If ``y`` is None, only the (weighted) objective Hessian is
        returned.
        """
        raise UnsupportedOperationError('hess_coord', self)

    def hess(self, x, obj_weight=1.0, y=None):
        """Evaluate the Lagrangian Hessian lower triangle as a sparse matrix"""
        rows, cols, vals = self.hess_coord(x, obj_weight=obj_weight, y=y)
        return scipy.sparse.coo_matrix(
            (vals, (rows, cols)), shape=(self.meta.nvar, self.meta.nvar)
        )

    def hprod(self, x, v, obj_weight=1.0, y=None, out=None):
        """Evaluate the Lagrangian-Hessian-vector product at ``(x, y)``"""
        raise UnsupportedOperationError('hprod', self)


def reset_counters(model):
    """Zero all evaluation counters of ``model`` (and return it)"""
    return model.reset()


def get_counters(model):
    """Return a read-only snapshot of the evaluation counters of ``model``"""
    return model.counters.snapshot()

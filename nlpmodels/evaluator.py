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
"""Derivative-evaluation callback sets bound into NLP models.

An evaluator is the frontend side of the backend adapter
(:py:class:`~nlpmodels.adapter.EvaluatorNLPModel`).  It is created once,
holds whatever the frontend needs to evaluate the problem functions, and
writes each result into a buffer supplied by the adapter.  Evaluators do
not count evaluations; the adapter does.
"""

from nlpmodels.dependencies import numpy as np
from nlpmodels.errors import DimensionError, UnsupportedOperationError


def store_result(buf, val, label):
    """Copy a callback result into ``buf``, verifying its shape first"""
    val = np.asarray(val, dtype=float)
    if val.shape != buf.shape:
        raise DimensionError(
            "The '%s' callback returned shape %s, but the model expects %s"
            % (label, val.shape, buf.shape)
        )
    buf[:] = val


def coord_matvec(rows, cols, vals, v, nrows):
    """Product of a coordinate-format matrix with ``v``"""
    return np.bincount(rows, weights=vals * v[cols], minlength=nrows)


def coord_rmatvec(rows, cols, vals, v, ncols):
    """Product of the transpose of a coordinate-format matrix with ``v``"""
    return np.bincount(cols, weights=vals * v[rows], minlength=ncols)


def coord_symmetric_matvec(rows, cols, vals, v, n):
    """Product of a symmetric matrix, given by its lower triangle, with ``v``"""
    offdiag = rows != cols
    ans = coord_matvec(rows, cols, vals, v, n)
    ans += coord_rmatvec(rows[offdiag], cols[offdiag], vals[offdiag], v, n)
    return ans


class NLPEvaluator(object):
    """Base class for evaluator callback sets.

    Subclasses must implement :py:meth:`eval_f`; every other callback
    raises :py:class:`UnsupportedOperationError` unless overridden.  The
    Jacobian and Hessian products fall back on assembling the product
    from the coordinate values.
    """

    def __init__(self, nvar, ncon):
        self.nvar = nvar
        self.ncon = ncon

    def features(self):
        """Return the set of derivative features this evaluator provides"""
        return set()

    def eval_f(self, x):
        raise UnsupportedOperationError('eval_f', self)

    def eval_grad_f(self, g, x):
        raise UnsupportedOperationError('eval_grad_f', self)

    def eval_g(self, c, x):
        raise UnsupportedOperationError('eval_g', self)

    def jac_structure(self):
        raise UnsupportedOperationError('jac_structure', self)

    def eval_jac_g(self, J, x):
        raise UnsupportedOperationError('eval_jac_g', self)

    def eval_jac_prod(self, jv, x, v):
        rows, cols = self.jac_structure()
        vals = np.empty(len(rows))
        self.eval_jac_g(vals, x)
        jv[:] = coord_matvec(rows, cols, vals, v, self.ncon)

    def eval_jac_prod_t(self, jtv, x, v):
        rows, cols = self.jac_structure()
        vals = np.empty(len(rows))
        self.eval_jac_g(vals, x)
        jtv[:] = coord_rmatvec(rows, cols, vals, v, self.nvar)

    def hesslag_structure(self):
        raise UnsupportedOperationError('hesslag_structure', self)

    def eval_hesslag(self, H, x, sigma, mu):
        raise UnsupportedOperationError('eval_hesslag', self)

    def eval_hesslag_prod(self, hv, x, v, sigma, mu):
        rows, cols = self.hesslag_structure()
        vals = np.empty(len(rows))
        self.eval_hesslag(vals, x, sigma, mu)
        hv[:] = coord_symmetric_matvec(rows, cols, vals, v, self.nvar)


class CallbackEvaluator(NLPEvaluator):
    """An evaluator built from plain Python callables.

    Parameters
    ----------
    nvar: int
        Number of variables
    ncon: int
        Number of constraints
    obj: callable
        ``obj(x)`` returns the objective value
    grad: callable, optional
        ``grad(x)`` returns the objective gradient
    cons: callable, optional
        ``cons(x)`` returns the constraint values
    jac: callable, optional
        ``jac(x)`` returns the Jacobian values, ordered as ``jac_structure``
    jac_structure: tuple, optional
        ``(rows, cols)`` of the Jacobian nonzeros
    hess: callable, optional
        ``hess(x, obj_weight, y)`` returns the values of the lower triangle
        of the Lagrangian Hessian, ordered as ``hess_structure``
    hess_structure: tuple, optional
        ``(rows, cols)`` of the Hessian lower-triangle nonzeros
    jprod, jtprod: callable, optional
        ``jprod(x, v)`` / ``jtprod(x, v)``; assembled from ``jac`` when omitted
    hprod: callable, optional
        ``hprod(x, v, obj_weight, y)``; assembled from ``hess`` when omitted
    """

    def __init__(
        self,
        nvar,
        ncon,
        obj,
        grad=None,
        cons=None,
        jac=None,
        jac_structure=None,
        hess=None,
        hess_structure=None,
        jprod=None,
        jtprod=None,
        hprod=None,
    ):
        super().__init__(nvar, ncon)
        self._obj = obj
        self._grad = grad
        self._cons = cons
        self._jac = jac
        self._hess = hess
        self._jprod = jprod
        self._jtprod = jtprod
        self._hprod = hprod
        if jac_structure is None and not ncon:
            jac_structure = ((), ())
        self._jac_structure = self._structure(jac_structure)
        self._hess_structure = self._structure(hess_structure)

    @staticmethod
    def _structure(pattern):
        if pattern is None:
            return None
        rows, cols = pattern
        return np.array(rows, dtype=int), np.array(cols, dtype=int)

    def features(self):
        ans = set()
        if self._grad is not None:
            ans.add('Grad')
        if self._jac is not None or not self.ncon:
            ans.add('Jac')
        if self._jprod is not None or 'Jac' in ans:
            ans.add('JacVec')
        if self._hess is not None:
            ans.add('Hess')
        if self._hprod is not None or 'Hess' in ans:
            ans.add('HessVec')
        return ans

    def eval_f(self, x):
        return float(self._obj(x))

    def eval_grad_f(self, g, x):
        if self._grad is None:
            raise UnsupportedOperationError('eval_grad_f', self)
        store_result(g, self._grad(x), 'grad')

    def eval_g(self, c, x):
        if not self.ncon:
            return
        if self._cons is None:
            raise UnsupportedOperationError('eval_g', self)
        store_result(c, self._cons(x), 'cons')

    def jac_structure(self):
        if self._jac_structure is None:
            raise UnsupportedOperationError('jac_structure', self)
        return self._jac_structure

    def eval_jac_g(self, J, x):
        if not self.ncon:
            return
        if self._jac is None:
            raise UnsupportedOperationError('eval_jac_g', self)
        store_result(J, self._jac(x), 'jac')

    def eval_jac_prod(self, jv, x, v):
        if self._jprod is None:
            return super().eval_jac_prod(jv, x, v)
        store_result(jv, self._jprod(x, v), 'jprod')

    def eval_jac_prod_t(self, jtv, x, v):
        if self._jtprod is None:
            return super().eval_jac_prod_t(jtv, x, v)
        store_result(jtv, self._jtprod(x, v), 'jtprod')

    def hesslag_structure(self):
        if self._hess_structure is None:
            raise UnsupportedOperationError('hesslag_structure', self)
        return self._hess_structure

    def eval_hesslag(self, H, x, sigma, mu):
        if self._hess is None:
            raise UnsupportedOperationError('eval_hesslag', self)
        store_result(H, self._hess(x, sigma, mu), 'hess')

    def eval_hesslag_prod(self, hv, x, v, sigma, mu):
        if self._hprod is None:
            return super().eval_hesslag_prod(hv, x, v, sigma, mu)
        store_result(hv, self._hprod(x, v, sigma, mu), 'hprod')

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

import logging

from nlpmodels.counters import Counters
from nlpmodels.dependencies import numpy as np
from nlpmodels.errors import DimensionError
from nlpmodels.evaluator import CallbackEvaluator
from nlpmodels.meta import NLPModelMeta
from nlpmodels.model import (
    AbstractNLPModel,
    check_multipliers,
    check_out,
    check_vector,
)

logger = logging.getLogger(__name__)


def _check_structure(pattern, nnz, nrows, ncols, label, lower=False):
    rows, cols = (np.array(idx, dtype=int) for idx in pattern)
    if rows.shape != (nnz,) or cols.shape != (nnz,):
        raise DimensionError(
            "The %s structure has %s/%s entries, but the model declares %s nonzeros"
            % (label, len(rows), len(cols), nnz)
        )
    if nnz and (
        rows.min() < 0 or rows.max() >= nrows or cols.min() < 0 or cols.max() >= ncols
    ):
        raise DimensionError(
            "The %s structure holds indices outside of a (%s, %s) matrix"
            % (label, nrows, ncols)
        )
    if lower and (rows < cols).any():
        raise ValueError(
            "The %s structure must only hold lower-triangular entries" % (label,)
        )
    rows.flags.writeable = False
    cols.flags.writeable = False
    return rows, cols


class EvaluatorNLPModel(AbstractNLPModel):
    """Bind an :py:class:`~nlpmodels.evaluator.NLPEvaluator` into the
    NLP model contract.

    This is the concrete (innermost) model: it owns the evaluation
    counters and increments exactly one of them per successful
    evaluation; calls rejected by argument checks or failing in the
    evaluator are not counted.  Each evaluation is first written into a
    scratch buffer owned by the model and only then copied into the
    result, so that an evaluator failure never leaves a caller's ``out``
    buffer partially written.  The scratch buffers are overwritten by
    the next evaluation of the same kind.

    Parameters
    ----------
    evaluator: NLPEvaluator
        The callback set evaluating the problem functions
    meta: NLPModelMeta
        The problem metadata (dimensions must agree with the evaluator)
    """

    def __init__(self, evaluator, meta):
        if evaluator.nvar != meta.nvar or evaluator.ncon != meta.ncon:
            raise DimensionError(
                "Evaluator dimensions (nvar=%s, ncon=%s) do not match the "
                "metadata (nvar=%s, ncon=%s)"
                % (evaluator.nvar, evaluator.ncon, meta.nvar, meta.ncon)
            )
        self.meta = meta
        self.evaluator = evaluator
        self.counters = Counters()

        nvar, ncon = meta.nvar, meta.ncon
        self._g = np.zeros(nvar)  # objective gradient
        self._c = np.zeros(ncon)  # constraint values
        self._jvals = np.zeros(meta.nnzj)  # Jacobian values
        self._jv = np.zeros(ncon)  # Jacobian-vector product
        self._jtv = np.zeros(nvar)  # transposed-Jacobian-vector product
        self._hvals = np.zeros(meta.nnzh)  # Lagrangian Hessian values
        self._hv = np.zeros(nvar)  # Hessian-vector product

        self._jac_pattern = None
        self._hess_pattern = None
        features = evaluator.features()
        if 'Jac' in features:
            self.jac_structure()
        if 'Hess' in features:
            self.hess_structure()
        logger.debug(
            "Bound %s to model '%s' (features: %s)",
            type(evaluator).__name__,
            meta.name,
            ', '.join(sorted(features)) or 'none',
        )

    def obj(self, x):
        x = check_vector(x, self.meta.nvar, 'x')
        f = self.evaluator.eval_f(x)
        self.counters.increment('neval_obj')
        return f

    def grad(self, x, out=None):
        x = check_vector(x, self.meta.nvar, 'x')
        out = check_out(out, self.meta.nvar)
        self.evaluator.eval_grad_f(self._g, x)
        self.counters.increment('neval_grad')
        out[:] = self._g
        return out

    def cons(self, x, out=None):
        x = check_vector(x, self.meta.nvar, 'x')
        out = check_out(out, self.meta.ncon)
        self.evaluator.eval_g(self._c, x)
        self.counters.increment('neval_cons')
        out[:] = self._c
        return out

    def jac_structure(self):
        if self._jac_pattern is None:
            self._jac_pattern = _check_structure(
                self.evaluator.jac_structure(),
                self.meta.nnzj,
                self.meta.ncon,
                self.meta.nvar,
                'Jacobian',
            )
        return self._jac_pattern

    def jac_coord(self, x):
        x = check_vector(x, self.meta.nvar, 'x')
        rows, cols = self.jac_structure()
        self.evaluator.eval_jac_g(self._jvals, x)
        self.counters.increment('neval_jac')
        return rows, cols, self._jvals.copy()

    def jprod(self, x, v, out=None):
        x = check_vector(x, self.meta.nvar, 'x')
        v = check_vector(v, self.meta.nvar, 'v')
        out = check_out(out, self.meta.ncon)
        self.evaluator.eval_jac_prod(self._jv, x, v)
        self.counters.increment('neval_jprod')
        out[:] = self._jv
        return out

    def jtprod(self, x, v, out=None):
        x = check_vector(x, self.meta.nvar, 'x')
        v = check_vector(v, self.meta.ncon, 'v')
        out = check_out(out, self.meta.nvar)
        self.evaluator.eval_jac_prod_t(self._jtv, x, v)
        self.counters.increment('neval_jtprod')
        out[:] = self._jtv
        return out

    def hess_structure(self):
        if self._hess_pattern is None:
            self._hess_pattern = _check_structure(
                self.evaluator.hesslag_structure(),
                self.meta.nnzh,
                self.meta.nvar,
                self.meta.nvar,
                'Hessian',
                lower=True,
            )
        return self._hess_pattern

    def hess_coord(self, x, obj_weight=1.0, y=None):
        x = check_vector(x, self.meta.nvar, 'x')
        y = check_multipliers(y, self.meta.ncon)
        rows, cols = self.hess_structure()
        self.evaluator.eval_hesslag(self._hvals, x, float(obj_weight), y)
        self.counters.increment('neval_hess')
        return rows, cols, self._hvals.copy()

    def hprod(self, x, v, obj_weight=1.0, y=None, out=None):
        x = check_vector(x, self.meta.nvar, 'x')
        v = check_vector(v, self.meta.nvar, 'v')
        y = check_multipliers(y, self.meta.ncon)
        out = check_out(out, self.meta.nvar)
        self.evaluator.eval_hesslag_prod(self._hv, x, v, float(obj_weight), y)
        self.counters.increment('neval_hprod')
        out[:] = self._hv
        return out


class CallbackNLPModel(EvaluatorNLPModel):
    """An NLP model defined by plain Python callables.

    The callables are those of :py:class:`~nlpmodels.evaluator.CallbackEvaluator`;
    the remaining keyword arguments are the
    :py:class:`~nlpmodels.meta.NLPModelMeta` options.  When omitted,
    ``nnzj`` and ``nnzh`` are taken from the length of the supplied
    structures.
    """

    def __init__(
        self,
        nvar,
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
        **kwds
    ):
        if jac_structure is not None:
            kwds.setdefault('nnzj', len(jac_structure[0]))
        if hess_structure is not None:
            kwds.setdefault('nnzh', len(hess_structure[0]))
        meta = NLPModelMeta(nvar, **kwds)
        evaluator = CallbackEvaluator(
            meta.nvar,
            meta.ncon,
            obj,
            grad=grad,
            cons=cons,
            jac=jac,
            jac_structure=jac_structure,
            hess=hess,
            hess_structure=hess_structure,
            jprod=jprod,
            jtprod=jtprod,
            hprod=hprod,
        )
        super().__init__(evaluator, meta)

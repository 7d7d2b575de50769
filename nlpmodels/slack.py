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

from nlpmodels.dependencies import numpy as np
from nlpmodels.errors import IndexPartitionInvariantError
from nlpmodels.meta import CONSTRAINT_PARTITIONS, NLPModelMeta, check_partition
from nlpmodels.model import (
    AbstractNLPModel,
    check_multipliers,
    check_out,
    check_vector,
)

logger = logging.getLogger(__name__)


def slack_model(model):
    """Return a model whose only inequality constraints are bounds.

    If ``model`` has no inequality constraints (every constraint is an
    equality), there is nothing to reformulate and ``model`` itself is
    returned.  Otherwise a :py:class:`SlackModel` wrapping ``model`` is
    returned.  Callers must therefore not assume that the result is a
    :py:class:`SlackModel`.
    """
    return SlackModel(model)


class SlackModel(AbstractNLPModel):
    u"""A model whose only inequality constraints are bounds.

    Given a model of the form

    .. math::

       \\min f(x) \\quad \\mbox{s.t.} \\quad c_L \\leq c(x) \\leq c_U,
       \\quad \\ell \\leq x \\leq u,

    this represents the equivalent model

    .. math::

       \\min f(x) \\quad \\mbox{s.t.} \\quad c(x) - s = 0,
       \\quad c_L \\leq s \\leq c_U, \\quad \\ell \\leq x \\leq u

    in the unknowns :math:`X = (x, s)`.  No slack variable is introduced
    for equality constraints.  The slack variables are ordered as
    ``[s_low, s_upp, s_rng, s_free]``, where ``low``, ``upp`` and ``rng``
    are the constraints of the form ``cL <= c(x)``, ``c(x) <= cU`` and
    ``cL <= c(x) <= cU``, respectively, and ``free`` the constraints
    without finite bounds (whose slacks are unbounded).

    Every evaluation is delegated to the wrapped model on the leading
    ``x`` block.  The wrapped model keeps counting the evaluations:
    ``SlackModel.counters`` *is* the counters of the wrapped model.

    A model without inequality constraints needs no reformulation:
    ``SlackModel(model)`` then returns ``model`` itself (in particular, a
    ``SlackModel`` is never wrapped twice).
    """

    def __new__(cls, model=None):
        if model is not None and model.meta.ncon == len(model.meta.jfix):
            logger.debug(
                "Model '%s' has no inequality constraints; no slack variables "
                "introduced",
                model.meta.name,
            )
            return model
        return super().__new__(cls)

    def __init__(self, model):
        if model is self:
            # an existing reformulation returned by __new__
            return
        base = model.meta
        # Slack rows, in [low, upp, rng, free] order
        srows = np.concatenate((base.jlow, base.jupp, base.jrng, base.jfree))
        srows = srows.astype(int)
        ns = len(srows)
        if ns != base.ncon - len(base.jfix):
            raise IndexPartitionInvariantError(
                "Model '%s' declares %s constraints, %s of which are fixed, but "
                "%s are lower, upper, range or free constraints"
                % (base.name, base.ncon, len(base.jfix), ns)
            )
        check_partition(
            [getattr(base, name) for name in CONSTRAINT_PARTITIONS],
            base.ncon,
            CONSTRAINT_PARTITIONS,
        )

        self.model = model
        self._n = base.nvar
        self._ns = ns
        self._srows = srows
        self._srows.flags.writeable = False

        jfix = base.jfix
        lcon = np.zeros(base.ncon)
        lcon[jfix] = base.lcon[jfix]
        ucon = np.zeros(base.ncon)
        ucon[jfix] = base.ucon[jfix]

        self.meta = NLPModelMeta(
            base.nvar + ns,
            x0=np.concatenate((base.x0, np.zeros(ns))),
            # l <= x <= u  and  cL <= s <= cU
            lvar=np.concatenate((base.lvar, base.lcon[srows])),
            uvar=np.concatenate((base.uvar, base.ucon[srows])),
            ncon=base.ncon,
            lcon=lcon,
            ucon=ucon,
            y0=base.y0,
            nnzj=base.nnzj + ns,
            nnzh=base.nnzh,
            lin=base.lin,
            nln=base.nln,
            minimize=base.minimize,
            islp=base.islp,
            name=base.name + '-slack',
        )
        self._jac_pattern = None
        logger.debug(
            "Introduced %s slack variables in model '%s' "
            "(low=%s upp=%s rng=%s free=%s)",
            ns,
            base.name,
            len(base.jlow),
            len(base.jupp),
            len(base.jrng),
            len(base.jfree),
        )

    def _slack_pattern(self, rows, cols):
        n = self._n
        rows = np.concatenate((rows, self._srows))
        cols = np.concatenate((cols, np.arange(n, n + self._ns)))
        rows.flags.writeable = False
        cols.flags.writeable = False
        return rows, cols

    @property
    def counters(self):
        return self.model.counters

    def reset(self):
        self.model.reset()
        return self

    def obj(self, x):
        # f(X) = f(x)
        x = check_vector(x, self.meta.nvar, 'x')
        return self.model.obj(x[: self._n])

    def grad(self, x, out=None):
        # grad f(X) = [grad f(x) ; 0]
        x = check_vector(x, self.meta.nvar, 'x')
        out = check_out(out, self.meta.nvar)
        n = self._n
        self.model.grad(x[:n], out=out[:n])
        out[n:] = 0
        return out

    def cons(self, x, out=None):
        # c(X) = c(x) - [0 ; s]  (no slack on the fixed rows)
        x = check_vector(x, self.meta.nvar, 'x')
        out = check_out(out, self.meta.ncon)
        n = self._n
        s = x[n:].copy()
        self.model.cons(x[:n], out=out)
        out[self._srows] -= s
        return out

    def jac_structure(self):
        # J(X) = [J(x)  -I]
        if self._jac_pattern is None:
            self._jac_pattern = self._slack_pattern(*self.model.jac_structure())
        return self._jac_pattern

    def jac_coord(self, x):
        x = check_vector(x, self.meta.nvar, 'x')
        rows, cols, vals = self.model.jac_coord(x[: self._n])
        if self._jac_pattern is None:
            self._jac_pattern = self._slack_pattern(rows, cols)
        rows, cols = self._jac_pattern
        return rows, cols, np.concatenate((vals, -np.ones(self._ns)))

    def jprod(self, x, v, out=None):
        # J(X) V = [J(x)  -I] [vx ; vs] = J(x) vx - vs
        x = check_vector(x, self.meta.nvar, 'x')
        v = check_vector(v, self.meta.nvar, 'v')
        out = check_out(out, self.meta.ncon)
        n = self._n
        vs = v[n:].copy()
        self.model.jprod(x[:n], v[:n], out=out)
        out[self._srows] -= vs
        return out

    def jtprod(self, x, v, out=None):
        # J(X)^T v = [J(x)^T v ; -v[S]]
        x = check_vector(x, self.meta.nvar, 'x')
        v = check_vector(v, self.meta.ncon, 'v')
        out = check_out(out, self.meta.nvar)
        n = self._n
        vs = -v[self._srows]
        self.model.jtprod(x[:n], v, out=out[:n])
        out[n:] = vs
        return out

    def hess_structure(self):
        # The Hessian block touching the slacks is identically zero
        return self.model.hess_structure()

    def hess_coord(self, x, obj_weight=1.0, y=None):
        x = check_vector(x, self.meta.nvar, 'x')
        y = check_multipliers(y, self.meta.ncon)
        return self.model.hess_coord(x[: self._n], obj_weight=obj_weight, y=y)

    def hprod(self, x, v, obj_weight=1.0, y=None, out=None):
        # H(X) V = [H(x) vx ; 0]
        x = check_vector(x, self.meta.nvar, 'x')
        v = check_vector(v, self.meta.nvar, 'v')
        y = check_multipliers(y, self.meta.ncon)
        out = check_out(out, self.meta.nvar)
        n = self._n
        self.model.hprod(x[:n], v[:n], obj_weight=obj_weight, y=y, out=out[:n])
        out[n:] = 0
        return out

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
"""NLP models built from Pyomo models.

The objective and constraint expressions are differentiated symbolically
once, when the model is built; every evaluation then loads the point
into the Pyomo variables and evaluates the stored expressions.
"""

import logging

from pyomo.common.collections import ComponentMap, ComponentSet
from pyomo.common.numeric_types import native_numeric_types
from pyomo.core import Constraint, Objective, minimize, value
from pyomo.core.expr.calculus.derivatives import differentiate
from pyomo.core.expr.visitor import identify_variables

from nlpmodels.adapter import EvaluatorNLPModel
from nlpmodels.dependencies import numpy as np
from nlpmodels.evaluator import NLPEvaluator
from nlpmodels.meta import NLPModelMeta

logger = logging.getLogger(__name__)


def _is_zero(expr):
    return expr.__class__ in native_numeric_types and expr == 0


def _is_linear(expr):
    if expr.__class__ in native_numeric_types:
        return True
    degree = expr.polynomial_degree()
    return degree is not None and degree <= 1


def _bound(val, default):
    return default if val is None else value(val)


class PyomoNLPEvaluator(NLPEvaluator):
    """Evaluate the functions of a Pyomo model and their derivatives.

    The model must have exactly one active objective.  Constraints are
    taken in the order returned by ``component_data_objects``, and the
    variables (unfixed variables referenced by the objective or the
    active constraints) in order of first appearance.
    """

    def __init__(self, block):
        objectives = list(
            block.component_data_objects(Objective, active=True, descend_into=True)
        )
        if len(objectives) != 1:
            raise ValueError(
                "Model '%s' must have exactly one active objective (found %s)"
                % (block.name, len(objectives))
            )
        self._objective = objectives[0]
        self._constraints = list(
            block.component_data_objects(Constraint, active=True, descend_into=True)
        )

        variables = []
        seen = ComponentSet()
        for expr in [self._objective.expr] + [c.body for c in self._constraints]:
            for v in identify_variables(expr, include_fixed=False):
                if v not in seen:
                    seen.add(v)
                    variables.append(v)
        self._variables = variables
        self._var_index = ComponentMap((v, i) for i, v in enumerate(variables))
        super().__init__(len(variables), len(self._constraints))

        self._grad_terms = self._first_derivatives(self._objective.expr)

        con_terms = [self._first_derivatives(con.body) for con in self._constraints]
        jrows, jcols, self._jac_exprs = [], [], []
        for i, first in enumerate(con_terms):
            for j, expr in first:
                jrows.append(i)
                jcols.append(j)
                self._jac_exprs.append(expr)
        self._jac_structure = (np.array(jrows, dtype=int), np.array(jcols, dtype=int))

        # Lower triangle of the Lagrangian Hessian.  Each term is
        # (nonzero index, source, expression), source -1 being the objective.
        nz = {}
        self._hess_terms = []
        sources = [(-1, self._grad_terms)] + list(enumerate(con_terms))
        for src, first in sources:
            for j, d in first:
                for k, dd in self._first_derivatives(d):
                    if k > j:
                        continue
                    idx = nz.setdefault((j, k), len(nz))
                    self._hess_terms.append((idx, src, dd))
        hrows = np.array([j for j, k in nz], dtype=int)
        hcols = np.array([k for j, k in nz], dtype=int)
        self._hess_structure = hrows, hcols

        logger.debug(
            "Differentiated model '%s': %s variables, %s constraints, "
            "%s Jacobian and %s Hessian nonzeros",
            block.name,
            self.nvar,
            self.ncon,
            len(jrows),
            len(nz),
        )

    def _first_derivatives(self, expr):
        if expr.__class__ in native_numeric_types:
            return []
        wrt = [
            v
            for v in identify_variables(expr, include_fixed=False)
            if v in self._var_index
        ]
        if not wrt:
            return []
        ders = differentiate(
            expr, wrt_list=wrt, mode=differentiate.Modes.reverse_symbolic
        )
        return sorted(
            (self._var_index[v], d) for v, d in zip(wrt, ders) if not _is_zero(d)
        )

    def get_pyomo_objective(self):
        return self._objective

    def get_pyomo_variables(self):
        return list(self._variables)

    def get_pyomo_constraints(self):
        return list(self._constraints)

    def features(self):
        return {'Grad', 'Jac', 'JacVec', 'Hess', 'HessVec'}

    def objective_is_linear(self):
        return _is_linear(self._objective.expr)

    def linear_constraints(self):
        return [i for i, con in enumerate(self._constraints) if _is_linear(con.body)]

    def _load_primals(self, x):
        for v, val in zip(self._variables, x):
            v.set_value(float(val), skip_validation=True)

    def eval_f(self, x):
        self._load_primals(x)
        return value(self._objective.expr)

    def eval_grad_f(self, g, x):
        self._load_primals(x)
        g[:] = 0
        for j, expr in self._grad_terms:
            g[j] = value(expr)

    def eval_g(self, c, x):
        self._load_primals(x)
        for i, con in enumerate(self._constraints):
            c[i] = value(con.body)

    def jac_structure(self):
        return self._jac_structure

    def eval_jac_g(self, J, x):
        self._load_primals(x)
        for k, expr in enumerate(self._jac_exprs):
            J[k] = value(expr)

    def hesslag_structure(self):
        return self._hess_structure

    def eval_hesslag(self, H, x, sigma, mu):
        self._load_primals(x)
        H[:] = 0
        for k, src, expr in self._hess_terms:
            weight = sigma if src < 0 else mu[src]
            if weight:
                H[k] += weight * value(expr)


class PyomoNLPModel(EvaluatorNLPModel):
    """An NLP model of a Pyomo model (typically a ``ConcreteModel``).

    Bounds are read from the Pyomo variables and constraints, and the
    initial point from the current variable values (0 when unset).
    """

    def __init__(self, pyomo_model, name=None):
        evaluator = PyomoNLPEvaluator(pyomo_model)
        variables = evaluator.get_pyomo_variables()
        constraints = evaluator.get_pyomo_constraints()
        lin = evaluator.linear_constraints()
        jrows, _ = evaluator.jac_structure()
        hrows, _ = evaluator.hesslag_structure()

        meta = NLPModelMeta(
            len(variables),
            x0=[0.0 if v.value is None else v.value for v in variables],
            lvar=[_bound(v.lb, -np.inf) for v in variables],
            uvar=[_bound(v.ub, np.inf) for v in variables],
            ncon=len(constraints),
            lcon=[_bound(c.lb, -np.inf) for c in constraints],
            ucon=[_bound(c.ub, np.inf) for c in constraints],
            nnzj=len(jrows),
            nnzh=len(hrows),
            lin=lin,
            minimize=(evaluator.get_pyomo_objective().sense == minimize),
            islp=evaluator.objective_is_linear() and len(lin) == len(constraints),
            name=pyomo_model.name if name is None else name,
        )
        super().__init__(evaluator, meta)
        self._pyomo_model = pyomo_model

    def pyomo_model(self):
        return self._pyomo_model

    def get_pyomo_variables(self):
        return self.evaluator.get_pyomo_variables()

    def get_pyomo_constraints(self):
        return self.evaluator.get_pyomo_constraints()

    def variable_names(self):
        return [v.name for v in self.get_pyomo_variables()]

    def constraint_names(self):
        return [c.name for c in self.get_pyomo_constraints()]

    def load_primals_into_pyomo_model(self, x):
        """Store the point ``x`` in the values of the Pyomo variables"""
        for v, val in zip(self.get_pyomo_variables(), x):
            v.set_value(float(val), skip_validation=True)

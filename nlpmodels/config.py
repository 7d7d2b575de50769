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
"""Configuration options for building NLP model metadata"""

from pyomo.common.config import ConfigDict, ConfigValue, Bool, NonNegativeInt
from nlpmodels.dependencies import numpy as np


def FloatVector(val):
    """Domain validator for optional one-dimensional float vectors.

    ``None`` is passed through so that the metadata can substitute a
    default of the right length once ``nvar`` / ``ncon`` are known.
    """
    if val is None:
        return None
    ans = np.array(val, dtype=float)
    if ans.ndim != 1:
        raise ValueError("Expected a one-dimensional vector, got shape %s" % (ans.shape,))
    return ans


def IndexVector(val):
    """Domain validator for optional lists of (0-based) integer indices"""
    if val is None:
        return None
    ans = np.array(val, dtype=int)
    if ans.ndim != 1:
        raise ValueError("Expected a one-dimensional index list, got shape %s" % (ans.shape,))
    return ans


def _optional_nonnegative_int(val):
    if val is None:
        return None
    return NonNegativeInt(val)


def _nlp_meta_config():
    CONFIG = ConfigDict('NLPModelMeta')

    CONFIG.declare(
        'ncon',
        ConfigValue(
            default=0,
            domain=NonNegativeInt,
            description="Number of general (non-bound) constraints",
        ),
    )
    CONFIG.declare(
        'x0',
        ConfigValue(
            default=None,
            domain=FloatVector,
            description="Initial point (default: all 0)",
        ),
    )
    CONFIG.declare(
        'y0',
        ConfigValue(
            default=None,
            domain=FloatVector,
            description="Initial Lagrange multipliers (default: all 0)",
        ),
    )
    CONFIG.declare(
        'lvar',
        ConfigValue(
            default=None,
            domain=FloatVector,
            description="Lower bounds on the variables (default: all -inf)",
        ),
    )
    CONFIG.declare(
        'uvar',
        ConfigValue(
            default=None,
            domain=FloatVector,
            description="Upper bounds on the variables (default: all +inf)",
        ),
    )
    CONFIG.declare(
        'lcon',
        ConfigValue(
            default=None,
            domain=FloatVector,
            description="Lower bounds on the constraints (default: all -inf)",
        ),
    )
    CONFIG.declare(
        'ucon',
        ConfigValue(
            default=None,
            domain=FloatVector,
            description="Upper bounds on the constraints (default: all +inf)",
        ),
    )
    CONFIG.declare(
        'nnzj',
        ConfigValue(
            default=None,
            domain=_optional_nonnegative_int,
            description="Number of nonzeros in the constraint Jacobian",
            doc="Defaults to a dense Jacobian (nvar * ncon entries).",
        ),
    )
    CONFIG.declare(
        'nnzh',
        ConfigValue(
            default=None,
            domain=_optional_nonnegative_int,
            description="Number of nonzeros in the lower triangle of the "
            "Lagrangian Hessian",
            doc="Defaults to a dense lower triangle (nvar * (nvar + 1) / 2 entries).",
        ),
    )
    CONFIG.declare(
        'lin',
        ConfigValue(
            default=None,
            domain=IndexVector,
            description="Indices of the linear constraints (default: none)",
        ),
    )
    CONFIG.declare(
        'nln',
        ConfigValue(
            default=None,
            domain=IndexVector,
            description="Indices of the nonlinear constraints",
            doc="Defaults to every constraint not listed in 'lin'.",
        ),
    )
    CONFIG.declare(
        'minimize',
        ConfigValue(
            default=True,
            domain=Bool,
            description="True if the objective is to be minimized",
        ),
    )
    CONFIG.declare(
        'islp',
        ConfigValue(
            default=False,
            domain=Bool,
            description="True if the objective and every constraint are linear",
        ),
    )
    CONFIG.declare(
        'name',
        ConfigValue(default='Generic', domain=str, description="Problem name"),
    )
    return CONFIG


NLP_META_CONFIG = _nlp_meta_config()
"""Options accepted by :py:class:`~nlpmodels.meta.NLPModelMeta`"""

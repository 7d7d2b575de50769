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
"""Problem metadata shared by every NLP model.

An :py:class:`NLPModelMeta` describes a problem of the form

.. math::

   \\min f(x) \\quad \\mbox{s.t.} \\quad c_L \\leq c(x) \\leq c_U,
   \\quad \\ell \\leq x \\leq u

through its dimensions, bounds, initial point and sparsity counts.  The
index partitions of the constraints (and of the variables) by bound
type are derived once, at construction, and never change afterwards.
"""

import logging

from pyomo.common.config import document_kwargs_from_configdict
from nlpmodels.config import NLP_META_CONFIG
from nlpmodels.dependencies import numpy as np
from nlpmodels.errors import (
    DimensionError,
    InconsistentBoundsError,
    IndexPartitionInvariantError,
)

logger = logging.getLogger(__name__)

#: Names of the constraint partitions, in classification order.
CONSTRAINT_PARTITIONS = ('jfix', 'jlow', 'jupp', 'jrng', 'jfree')
#: Names of the variable partitions, in classification order.
VARIABLE_PARTITIONS = ('ifix', 'ilow', 'iupp', 'irng', 'ifree')


def _readonly(arr):
    arr.flags.writeable = False
    return arr


def partition_bounds(lower, upper):
    """Classify each index of a pair of bound vectors.

    Returns the ``(fixed, low, upp, rng, free)`` index arrays.  An index
    whose bounds are both finite and equal is always *fixed*, never a
    range.
    """
    fixed, low, upp, rng, free = [], [], [], [], []
    for i, (lb, ub) in enumerate(zip(lower, upper)):
        has_lb = lb > -np.inf
        has_ub = ub < np.inf
        if has_lb and has_ub:
            if lb == ub:
                fixed.append(i)
            else:
                rng.append(i)
        elif has_lb:
            low.append(i)
        elif has_ub:
            upp.append(i)
        else:
            free.append(i)
    return tuple(_readonly(np.array(idx, dtype=int)) for idx in (fixed, low, upp, rng, free))


def check_partition(parts, n, names):
    """Verify that ``parts`` cover ``range(n)`` exactly once"""
    counts = np.zeros(n, dtype=int)
    for name, idx in zip(names, parts):
        if len(idx) and (idx.min() < 0 or idx.max() >= n):
            raise IndexPartitionInvariantError(
                "Partition '%s' holds indices outside of range(%s)" % (name, n)
            )
        np.add.at(counts, idx, 1)
    if n and (counts != 1).any():
        bad = np.flatnonzero(counts != 1)
        raise IndexPartitionInvariantError(
            "Partitions %s do not cover each of the %s indices exactly once "
            "(offending indices: %s)" % (', '.join(names), n, bad.tolist())
        )


def _vector(val, size, fill, label):
    if val is None:
        return np.full(size, fill, dtype=float)
    if len(val) != size:
        raise DimensionError(
            "'%s' has length %s, but the model declares %s entries"
            % (label, len(val), size)
        )
    return val.copy()


class NLPModelMeta(object):
    """Metadata of a nonlinear program.

    Parameters
    ----------
    nvar: int
        Number of variables
    """

    @document_kwargs_from_configdict(NLP_META_CONFIG)
    def __init__(self, nvar, **kwds):
        config = NLP_META_CONFIG(kwds)
        if nvar < 0 or int(nvar) != nvar:
            raise DimensionError("nvar must be a non-negative integer (got %s)" % (nvar,))
        nvar = int(nvar)
        ncon = config.ncon

        x0 = _vector(config.x0, nvar, 0.0, 'x0')
        lvar = _vector(config.lvar, nvar, -np.inf, 'lvar')
        uvar = _vector(config.uvar, nvar, np.inf, 'uvar')
        y0 = _vector(config.y0, ncon, 0.0, 'y0')
        lcon = _vector(config.lcon, ncon, -np.inf, 'lcon')
        ucon = _vector(config.ucon, ncon, np.inf, 'ucon')

        if (lvar > uvar).any():
            raise InconsistentBoundsError(
                "Variable lower bounds exceed upper bounds at indices %s"
                % (np.flatnonzero(lvar > uvar).tolist(),)
            )
        if (lcon > ucon).any():
            raise InconsistentBoundsError(
                "Constraint lower bounds exceed upper bounds at indices %s"
                % (np.flatnonzero(lcon > ucon).tolist(),)
            )

        lin = config.lin if config.lin is not None else np.zeros(0, dtype=int)
        for label, idx in (('lin', lin), ('nln', config.nln)):
            if idx is not None and len(idx) and (idx.min() < 0 or idx.max() >= ncon):
                raise DimensionError(
                    "'%s' refers to constraints outside of range(%s)" % (label, ncon)
                )
        if config.nln is None:
            nln = np.setdiff1d(np.arange(ncon), lin)
        else:
            nln = config.nln
        if np.intersect1d(lin, nln).size:
            raise InconsistentBoundsError(
                "Constraints %s are declared both linear and nonlinear"
                % (np.intersect1d(lin, nln).tolist(),)
            )

        nnzj = config.nnzj if config.nnzj is not None else nvar * ncon
        nnzh = config.nnzh if config.nnzh is not None else nvar * (nvar + 1) // 2

        jparts = partition_bounds(lcon, ucon)
        check_partition(jparts, ncon, CONSTRAINT_PARTITIONS)
        iparts = partition_bounds(lvar, uvar)
        check_partition(iparts, nvar, VARIABLE_PARTITIONS)

        _set = super().__setattr__
        _set('nvar', nvar)
        _set('ncon', ncon)
        _set('x0', _readonly(x0))
        _set('y0', _readonly(y0))
        _set('lvar', _readonly(lvar))
        _set('uvar', _readonly(uvar))
        _set('lcon', _readonly(lcon))
        _set('ucon', _readonly(ucon))
        _set('nnzj', nnzj)
        _set('nnzh', nnzh)
        _set('lin', _readonly(np.sort(lin)))
        _set('nln', _readonly(np.sort(nln)))
        _set('nlin', len(lin))
        _set('nnln', len(nln))
        _set('minimize', config.minimize)
        _set('islp', config.islp)
        _set('name', config['name'])
        for name, idx in zip(CONSTRAINT_PARTITIONS, jparts):
            _set(name, idx)
        for name, idx in zip(VARIABLE_PARTITIONS, iparts):
            _set(name, idx)

        logger.debug(
            "Built metadata for '%s': nvar=%s ncon=%s (fix=%s low=%s upp=%s "
            "rng=%s free=%s)",
            self.name,
            nvar,
            ncon,
            *(len(idx) for idx in jparts),
        )

    def __setattr__(self, name, val):
        raise AttributeError(
            "NLPModelMeta is read-only (cannot set attribute '%s')" % (name,)
        )

    def __delattr__(self, name):
        raise AttributeError(
            "NLPModelMeta is read-only (cannot delete attribute '%s')" % (name,)
        )

    def __str__(self):
        rows = [
            ('', 'variables', 'constraints'),
            ('total', self.nvar, self.ncon),
            ('free', len(self.ifree), len(self.jfree)),
            ('lower', len(self.ilow), len(self.jlow)),
            ('upper', len(self.iupp), len(self.jupp)),
            ('range', len(self.irng), len(self.jrng)),
            ('fixed', len(self.ifix), len(self.jfix)),
            ('linear', '', self.nlin),
            ('nonlinear', '', self.nnln),
        ]
        lines = ["Problem name: %s" % (self.name,)]
        lines.extend("  %-10s %11s %13s" % row for row in rows)
        lines.append("  nnzj: %s  nnzh: %s" % (self.nnzj, self.nnzh))
        lines.append(
            "  %s  islp: %s"
            % ('minimize' if self.minimize else 'maximize', self.islp)
        )
        return '\n'.join(lines)

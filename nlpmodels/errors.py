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

from pyomo.common.errors import PyomoException, format_exception


class NLPModelError(PyomoException):
    """
    Base class for the exceptions raised by nlpmodels, allowing them to
    be caught in a general way by the algorithms consuming a model.
    """


class DimensionError(NLPModelError, ValueError):
    """
    Exception raised when a vector (or coordinate array) does not have
    the length declared by the model metadata (nvar, ncon, nnzj, nnzh).
    """


class InconsistentBoundsError(NLPModelError, ValueError):
    """
    Exception raised when a lower bound exceeds the matching upper bound,
    or when a constraint is declared both linear and nonlinear.
    """


class UnsupportedOperationError(NLPModelError, NotImplementedError):
    """
    Exception raised when a model (or the evaluator behind it) does not
    implement the requested evaluation.  Models never return a default
    (e.g., zero) value in place of an unavailable derivative.
    """

    def __init__(self, operation=None, model=None):
        if operation is None:
            return super().__init__()
        if model is None:
            msg = "Operation '%s' is not supported" % (operation,)
        else:
            msg = "Operation '%s' is not supported by %s" % (
                operation,
                type(model).__name__,
            )
        self.operation = operation
        super().__init__(msg)


class IndexPartitionInvariantError(NLPModelError, RuntimeError):
    """
    Exception raised when the constraint (or variable) index partitions
    do not cover the index range exactly once, or when a slack
    reformulation refers to rows that do not exist in the wrapped model.
    This indicates a programming error and is not recoverable.
    """

    def __str__(self):
        return format_exception(
            repr(super().__str__()),
            prolog="Internal index partition inconsistency:",
            epilog="The model metadata no longer describes the wrapped model.",
            exception=self,
        )

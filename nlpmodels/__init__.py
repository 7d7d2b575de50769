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

from nlpmodels.version import __version__, version, version_info
from nlpmodels.errors import (
    NLPModelError,
    DimensionError,
    InconsistentBoundsError,
    UnsupportedOperationError,
    IndexPartitionInvariantError,
)
from nlpmodels.counters import COUNTER_NAMES, Counters, CounterSnapshot
from nlpmodels.meta import NLPModelMeta
from nlpmodels.model import AbstractNLPModel, reset_counters, get_counters
from nlpmodels.evaluator import NLPEvaluator, CallbackEvaluator
from nlpmodels.adapter import EvaluatorNLPModel, CallbackNLPModel
from nlpmodels.slack import SlackModel, slack_model

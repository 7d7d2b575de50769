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

from pyomo.common.dependencies import attempt_import, scipy, scipy_available

numpy, numpy_available = attempt_import(
    'numpy',
    'nlpmodels requires the "numpy" package',
    minimum_version='1.17.0',
    defer_import=False,
)

if not numpy_available:
    numpy.log_import_warning('nlpmodels')

if not scipy_available:
    scipy.sparse.log_import_warning(
        'nlpmodels', 'nlpmodels requires the "scipy.sparse" package'
    )

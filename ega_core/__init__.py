"""
EGA Core Library
================

Modular analysis framework for Exploratory Graph Analysis (EGA), with
Exploratory Factor Analysis (EFA) as the comparison baseline.

Modules:
    config          - Global configuration parameters
    data            - Data loading, item selection, standardization
    correlation     - Correlation matrix estimation and validation
    network         - EBICglasso and TMFG network estimation
    community       - Walktrap community detection
    ega             - Combined exploratory graph analysis
    dimensionality  - Kaiser, parallel analysis and scree criteria
    efa             - Factor analysis functions
    viz             - Visualization utilities
    output          - Output naming and saving
    report          - Text and HTML reports
    walkthrough     - End-to-end pipeline and CLI
"""

from . import config
from . import data
from . import correlation
from . import network
from . import community
from . import ega
from . import dimensionality
from . import efa
from . import viz
from . import output
from . import report

__version__ = '1.0.0'

__all__ = [
    'config',
    'data',
    'correlation',
    'network',
    'community',
    'ega',
    'dimensionality',
    'efa',
    'viz',
    'output',
    'report',
]

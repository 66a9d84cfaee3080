"""
WDBC tumor-mass classification study.

Loads the Wisconsin Diagnostic Breast Cancer table, fits penalized,
unpenalized and PCA-reduced logistic regression models, and evaluates
them on a stratified holdout split and with leave-one-out
cross-validation.

DISCLAIMER: This is a statistical analysis of a public research dataset.
It does NOT provide medical diagnoses or replace professional medical
advice. All outputs are for research and educational purposes only.
"""

__version__ = "0.1.0"

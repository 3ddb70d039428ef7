"""
Rogers-Castro Bayes — Test Suite
================================

Test modules:
- test_parameters.py: parameter validation and model specs
- test_curve.py: curve evaluation
- test_schedule_data.py: observed data containers and loading
- test_bayesian.py: model building, sampling driver, summaries (stub engine)
- test_bayesian_integration.py: end-to-end PyMC runs (slow)
- test_examples.py: helpers of the example workflow
"""

"""resource-forge: normalize and validate client / worker / task spreadsheets.

Raw rows are reconciled to canonical headers, coerced to typed records and run
through the validation passes and the cross-reference checker. Rules are
captured as descriptors and exported as configuration.
"""

__version__ = "0.1.0"

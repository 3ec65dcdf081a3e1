"""
Telephony package.

Keep package import side-effects to a minimum; import submodules directly.
"""

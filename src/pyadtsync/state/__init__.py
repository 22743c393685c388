"""Arming policy and staged target state.

Decides whether a requested target state may be dispatched to the
device, and tracks the target while the device has not confirmed it.
"""

"""Course seat availability tracker.

This package parses the registration portal's section table, moves finished
subscriptions into the archive collection of a document store, and sends
SMS notifications.
"""

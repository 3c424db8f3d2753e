# This module provides the store backends the resolver and the
# profile code talk to. A store answers validity and reference
# queries about the objects it holds; it never builds anything.
#
# Backends with local filesystem semantics derive from LocalFSStore.
# Only those can host profiles, since a profile is a family of
# symlinks pointing into the store directory.

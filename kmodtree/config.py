"""
Conventional locations and constants for kernel module introspection.

Every function in the package accepts overrides for these values; they are
only the defaults used when the caller does not pass anything.
"""

# Root of the installed kernel trees, one subdirectory per kernel version
MODULES_ROOT = '/lib/modules'

# Static dependency index shipped in every kernel tree
MODULES_DEP = 'modules.dep'

# Live table of loaded modules
PROC_MODULES = '/proc/modules'

# File suffixes a module object can carry on disk, longest first
MODULE_SUFFIXES = ('.ko.zst', '.ko.xz', '.ko.gz', '.ko')

# Placeholder used by /proc/modules for an empty dependency field
EMPTY_LIST_PLACEHOLDER = '-'

# Trailer appended to signed module files
SIGNATURE_MARKER = b'~Module signature appended~\n'

# .modinfo keys only present on signed modules
SIGNATURE_KEYS = ('sig_id', 'signer', 'signature', 'sig_key', 'sig_hashalgo')

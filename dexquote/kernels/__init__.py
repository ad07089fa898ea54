"""
Kernel layer.

`dexquote/kernels/python/` holds the swap and LP sizing kernels that the
quoters in `dexquote.core` build on.
"""

"""
Byte-level transport: encoding detection (``encoding``), the ANSEL codec
(``ansel``), and the line reader/writer (``line_reader``, ``line_writer``).

Import from the submodules directly; ``core.options`` depends on
``io.encoding``, so this package keeps no eager imports.
"""

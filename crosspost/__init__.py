"""
Top-level package for the ACF-aware WordPress cross-posting transformer.

This package prepares a post, product or term read from one WordPress site
so that it can be published on another one.  ACF field data is re-keyed and
every attachment, relationship, term and user reference is translated into
the destination site's identifiers.  Gutenberg ``acf/*`` blocks embedded in
the content are parsed, transformed and serialized back.  Modules are split
into subpackages:

* :mod:`crosspost.models` – pydantic models for declarations, blocks and runs
* :mod:`crosspost.resolvers` – identifier lookup (mapping table, natural keys)
* :mod:`crosspost.destinations` – WordPress REST helpers with retries
* :mod:`crosspost.fields` – field registry, value transformer and tree walker
* :mod:`crosspost.blocks` – block parser, escaping, transformer and serializer
* :mod:`crosspost.utils` – log messages and JSONL event reports

Orchestration (configuration, filter registration and the per record kind
entry points) lives in :mod:`crosspost.crosspost_tool`.
"""

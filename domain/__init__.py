"""Describes the recipe keeper domain. Centres around the recipe aggregate.

A recipe is read and written whole: the base record plus its ingredients and
instructions. Creation and deletion are plain. Updates are the interesting
part: the client sends back the full child lists, some items with ids and
some without, and the stored rows are brought in line inside one transaction.

- `domain.db` holds the schema and the sqlite specifics.
- `domain.reconcile` plans and applies the child row changes.
- `domain.repository` is everything the routes call.
"""

'''Interchangeable parts of counting methods.

Quota functions, rank scorers, pairwise win scorers and tie-breakers. Named
variants are assembled in registries from which the ``get()`` and
``construct()`` functions of each module retrieve them.
'''

"""
Couche infrastructure de CineScope.

- persistence/ : Profile Store relationnel avec SQLModel (modeles et repositories)

Architecture hexagonale : les repositories implementent les ports du domaine,
ce qui permet de passer de SQLite a PostgreSQL sans modifier la logique
de synchronisation.
"""

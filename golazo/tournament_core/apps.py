from django.apps import AppConfig


class TournamentCoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'golazo.tournament_core'
    verbose_name = 'Tournament Progression Engine'

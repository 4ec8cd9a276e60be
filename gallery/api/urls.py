from django.urls import path

from gallery.api.views import history_view, keep_alive_view, paintings_view

urlpatterns = [
    path("paintings/", paintings_view, name="paintings"),
    path("paintings/history/", history_view, name="painting-history"),
    path("cron/keep-alive/", keep_alive_view, name="keep-alive"),
]

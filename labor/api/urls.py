from django.urls import path

from .views import LaborPostingListCreateAPIView

urlpatterns = [
    path("labor-postings/", LaborPostingListCreateAPIView.as_view(), name="labor-posting-list"),
]

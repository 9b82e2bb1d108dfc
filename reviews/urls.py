from django.urls import path
from . import views

urlpatterns = [
    path('', views.ReviewListView.as_view(), name='reviews'),
    path('<int:review_id>/like', views.ReviewLikeView.as_view(), name='review_like'),
]

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import ChatViewSet, EventViewSet

router = DefaultRouter()
router.register(r'events', EventViewSet, basename='event')
router.register(r'chat', ChatViewSet, basename='chat')

urlpatterns = [
    path('', include(router.urls)),
]

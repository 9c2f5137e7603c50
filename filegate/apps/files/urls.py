"""URL mapping for files app."""

from django.urls import path

from filegate.apps.files import views

app_name = 'files'

urlpatterns = [
    path('', views.file_collection, name='collection'),
    path('stats/', views.file_stats, name='stats'),
    path('storage/usage/', views.storage_usage, name='storage-usage'),
    path('<int:file_id>/', views.file_detail, name='detail'),
    path('<int:file_id>/download/', views.file_download, name='download'),
]

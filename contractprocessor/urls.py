from django.urls import path
from .views import detect_fields_view, process_document_view, render_document_view

urlpatterns = [
    path('process/', process_document_view, name='process_document'),
    path('render/', render_document_view, name='render_document'),
    path('detect-fields/', detect_fields_view, name='detect_fields'),
]

from django.urls import path

from . import views

app_name = 'registrations'
urlpatterns = [
    path('<int:event_id>/register/', views.Register.as_view(), name="register"),
    path('<int:event_id>/cancel/', views.Cancel.as_view(), name="cancel"),
    path('<int:event_id>/plus-one/', views.AddPlusOne.as_view(), name="plus_one_add"),
    path('<int:event_id>/plus-one/remove/', views.RemovePlusOne.as_view(), name="plus_one_remove"),
    path('<int:event_id>/barcode/', views.Barcode.as_view(), name="barcode"),
    path('<int:event_id>/roster/', views.Roster.as_view(), name="roster"),
    path('<int:event_id>/roster/add/', views.RosterAdd.as_view(), name="roster_add"),
    path('<int:event_id>/roster/remove/', views.RosterRemove.as_view(), name="roster_remove"),
    path('<int:event_id>/roster/attendance/', views.RosterAttendance.as_view(), name="roster_attendance"),
    path('<int:event_id>/roster/search/', views.RosterSearch.as_view(), name="roster_search"),
    path('scan/', views.Scan.as_view(), name="scan"),
]

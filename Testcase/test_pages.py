"""
End-to-end tests of the player and admin pages.

Scenario 1: empty store -> player sees "No Puzzle Available".
Scenario 2: admin creates the weekday 3 puzzle with tiles [0, 4, 8];
            a weekday 3 player passes with [4, 0, 8] and fails with [4, 0, 7].
Scenario 3: admin changes a weekday's tiles from [0, 1] to [2, 3];
            the player's next fetch sees the new tiles.
"""

import io

import pytest

import captcha_server
from conftest import make_puzzle
from settings import MAX_CONTENT_LENGTH


@pytest.fixture
def on_weekday(monkeypatch):
    def set_weekday(weekday):
        monkeypatch.setattr(captcha_server, 'current_weekday', lambda: weekday)
    return set_weekday


def page(resp):
    assert resp.status_code == 200
    return resp.get_data(as_text=True)


def admin_form(**overrides):
    form = {
        'weekday': '3',
        'image_url': 'https://example.com/street.jpg',
        'target_description': 'a traffic light',
        'tiles': ['0', '4', '8'],
    }
    form.update(overrides)
    return form


# ============================================================================
# Player
# ============================================================================

def test_scenario_1_no_puzzles(client):
    html = page(client.get('/'))
    assert 'No Puzzle Available' in html
    assert 'Verify' not in html


def test_scenario_2_create_then_verify(client, service, on_weekday):
    html = page(client.post('/admin/save', data=admin_form()))
    assert 'Puzzle created successfully' in html

    on_weekday(3)
    html = page(client.get('/'))
    assert 'a traffic light' in html
    assert 'Select all squares that contain:' in html
    puzzle_id = service.get_puzzle_for_weekday(3)['id']

    html = page(client.post('/verify', data={
        'puzzle_id': str(puzzle_id), 'attempts': '0', 'tiles': ['4', '0', '8']}))
    assert 'Success!' in html
    assert 'name="attempts" value="1"' in html

    html = page(client.post('/verify', data={
        'puzzle_id': str(puzzle_id), 'attempts': '1', 'tiles': ['4', '0', '7']}))
    assert 'Success!' not in html
    assert 'Incorrect selection. Please try again.' in html
    assert 'name="attempts" value="2"' in html
    assert service.get_puzzle(puzzle_id)['correctTiles'] == [0, 4, 8]


def test_scenario_3_edit_changes_what_players_get(client, service, on_weekday):
    puzzle = service.create_puzzle(make_puzzle(weekday=5, tiles=[0, 1]))

    html = page(client.get(f"/admin?edit={puzzle['id']}"))
    assert 'Edit Puzzle' in html

    html = page(client.post('/admin/save', data=admin_form(
        editing_id=str(puzzle['id']), weekday='5', tiles=['2', '3'])))
    assert 'Puzzle updated successfully' in html

    assert service.get_puzzle_for_weekday(5)['correctTiles'] == [2, 3]

    on_weekday(5)
    page(client.get('/'))
    html = page(client.post('/verify', data={
        'puzzle_id': str(puzzle['id']), 'attempts': '0', 'tiles': ['0', '1']}))
    assert 'Incorrect selection. Please try again.' in html


def test_player_falls_back_to_any_puzzle(client, service, on_weekday):
    service.create_puzzle(make_puzzle(weekday=6, description='fire hydrants'))
    on_weekday(1)
    assert 'fire hydrants' in page(client.get('/'))


def test_verify_for_deleted_puzzle_shows_current_one(client, service, on_weekday):
    service.create_puzzle(make_puzzle(weekday=2, description='stairs'))
    on_weekday(2)
    html = page(client.post('/verify', data={'puzzle_id': '999', 'tiles': ['1']}))
    assert 'stairs' in html
    assert 'Success!' not in html


# ============================================================================
# Admin
# ============================================================================

def test_admin_lists_every_weekday(client, service):
    service.create_puzzle(make_puzzle(weekday=0, description='buses'))
    html = page(client.get('/admin'))
    for day in ('Sunday', 'Monday', 'Saturday'):
        assert day in html
    assert 'buses' in html
    assert 'Create New Puzzle' in html


def test_admin_select_weekday_opens_new_form(client):
    html = page(client.get('/admin?weekday=4'))
    assert 'Save Puzzle' in html
    assert '<option value="4" selected>' in html


def test_admin_upload_shows_tile_picker(client, png_bytes):
    data = admin_form(image_url='', tiles=[])
    data['image'] = (io.BytesIO(png_bytes), 'street.png')
    html = page(client.post('/admin/upload', data=data, content_type='multipart/form-data'))

    assert 'Image uploaded successfully' in html
    assert 'Select the tiles that contain:' in html
    assert 'http://localhost/images/' in html


def test_admin_upload_without_file(client):
    html = page(client.post('/admin/upload', data=admin_form(),
                            content_type='multipart/form-data'))
    assert 'No image selected' in html


def test_admin_upload_over_request_limit_shows_toast(client, service):
    data = admin_form(image_url='', tiles=[])
    data['image'] = (io.BytesIO(b'\0' * (MAX_CONTENT_LENGTH + 1)), 'huge.png')
    resp = client.post('/admin/upload', data=data, content_type='multipart/form-data')

    assert resp.status_code == 413
    html = resp.get_data(as_text=True)
    assert 'File size must be less than 10MB' in html
    assert 'Sunday' in html
    assert service.list_puzzles() == []


def test_admin_save_applies_ticked_tiles_once(client, service):
    page(client.post('/admin/save', data=admin_form(tiles=['8', '1', '1', '12'])))
    assert service.get_puzzle_for_weekday(3)['correctTiles'] == [8, 1]


def test_admin_save_incomplete(client, service):
    html = page(client.post('/admin/save', data=admin_form(tiles=[])))
    assert 'Please fill in all fields and select at least one correct tile' in html
    assert service.list_puzzles() == []


def test_admin_cancel(client, service):
    html = page(client.post('/admin/cancel', data=admin_form()))
    assert 'Start' in html
    assert service.list_puzzles() == []


def test_admin_delete(client, service):
    puzzle = service.create_puzzle(make_puzzle())

    page(client.post(f"/admin/delete/{puzzle['id']}"))
    assert len(service.list_puzzles()) == 1

    html = page(client.post(f"/admin/delete/{puzzle['id']}", data={'confirmed': '1'}))
    assert 'Puzzle deleted successfully' in html
    assert service.list_puzzles() == []

"""
Tests for the JSON API.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))


def create(client, teams, tournament_type="single-elimination", **extra):
    payload = {'name': 'Cup', 'type': tournament_type, 'team_names': teams}
    payload.update(extra)
    return client.post('/api/tournaments', json=payload)


class TestCreateEndpoint:
    """Tests for POST /api/tournaments."""

    def test_create(self, client):
        """Creating returns 201 and the full tournament."""
        response = create(client, ["A", "B", "C", "D"])
        assert response.status_code == 201
        data = response.get_json()
        assert data['status'] == 'in-progress'
        assert [r['name'] for r in data['rounds']] == ["Semifinals", "Finals"]
        assert data['rounds'][0]['matches'][0]['team1'] == {'type': 'team', 'team_name': 'A'}

    def test_create_rejects_duplicates(self, client):
        """Team names must be unique."""
        response = create(client, ["A", "A", "B"])
        assert response.status_code == 400
        assert 'unique' in response.get_json()['error']

    def test_create_rejects_blank_names(self, client):
        """Blank team names are rejected."""
        assert create(client, ["A", "  "]).status_code == 400

    def test_create_rejects_bad_type(self, client):
        """Unknown formats are a 400."""
        response = create(client, ["A", "B"], tournament_type="swiss")
        assert response.status_code == 400

    def test_create_requires_json(self, client):
        """Non JSON bodies are rejected."""
        response = client.post('/api/tournaments', data="teams", content_type='text/plain')
        assert response.status_code == 400

    def test_too_few_teams(self, client):
        """One team cannot make a bracket."""
        assert create(client, ["A"]).status_code == 400


class TestReadEndpoints:
    """Tests for listing and fetching tournaments."""

    def test_get_and_list(self, client):
        """Created tournaments can be fetched and listed."""
        tid = create(client, ["A", "B", "C"]).get_json()['tournament_id']
        assert client.get(f'/api/tournaments/{tid}').get_json()['tournament_id'] == tid
        listing = client.get('/api/tournaments').get_json()['tournaments']
        assert [t['tournament_id'] for t in listing] == [tid]
        assert listing[0]['team_count'] == 3

    def test_list_filter_by_status(self, client):
        """Status filter narrows the list; unknown statuses are rejected."""
        create(client, ["A", "B"])
        assert client.get('/api/tournaments?status=completed').get_json()['tournaments'] == []
        assert len(client.get('/api/tournaments?status=in-progress').get_json()['tournaments']) == 1
        assert client.get('/api/tournaments?status=paused').status_code == 400

    def test_not_found(self, client):
        """Unknown ids are a 404 with an error message."""
        response = client.get('/api/tournaments/T-missing')
        assert response.status_code == 404
        assert response.get_json() == {'error': 'Tournament not found'}

    def test_delete(self, client):
        """Delete removes the tournament."""
        tid = create(client, ["A", "B"]).get_json()['tournament_id']
        assert client.delete(f'/api/tournaments/{tid}').get_json() == {'success': True}
        assert client.get(f'/api/tournaments/{tid}').status_code == 404
        assert client.delete(f'/api/tournaments/{tid}').status_code == 404

    def test_playable(self, client):
        """Playable matches come back in quiz order with resolved names."""
        tid = create(client, ["A", "B", "C"]).get_json()['tournament_id']
        matches = client.get(f'/api/tournaments/{tid}/playable').get_json()['matches']
        assert [m['match_id'] for m in matches] == ["WR1M2"]
        assert (matches[0]['team1_name'], matches[0]['team2_name']) == ("B", "C")

    def test_round_names(self, client):
        """Round names preview a bracket without creating it."""
        data = client.get('/api/round-names?count=4&type=double-elimination').get_json()
        assert data['round_names'] == ["Winners Semifinals", "Winners Final", "L Round 1", "L Final", "Championship"]
        assert data['round_count'] == 5
        assert client.get('/api/round-names?count=four').status_code == 400


class TestResultEndpoint:
    """Tests for POST .../matches/<match_id>/result."""

    def test_full_single_elimination(self, client):
        """Recording every result completes the tournament and names the winner."""
        tid = create(client, ["A", "B", "C", "D"]).get_json()['tournament_id']
        url = f'/api/tournaments/{tid}/matches/%s/result'
        assert client.post(url % 'WR1M1', json={'team1_score': 20, 'team2_score': 10}).status_code == 200
        assert client.post(url % 'WR1M2', json={'team1_score': 20, 'team2_score': 15}).status_code == 200
        assert client.get(f'/api/tournaments/{tid}/winner').get_json()['winner'] is None

        data = client.post(url % 'WR2M1', json={'team1_score': 20, 'team2_score': 12}).get_json()
        assert data['status'] == 'completed'
        assert client.get(f'/api/tournaments/{tid}/winner').get_json() == {'status': 'completed', 'winner': 'A'}

    def test_tie(self, client):
        """Ties are a 400."""
        tid = create(client, ["A", "B"]).get_json()['tournament_id']
        response = client.post(f'/api/tournaments/{tid}/matches/WR1M1/result',
                               json={'team1_score': 10, 'team2_score': 10})
        assert response.status_code == 400
        assert 'Ties' in response.get_json()['error']

    def test_not_ready(self, client):
        """Scoring a match with undetermined teams is a 409."""
        tid = create(client, ["A", "B", "C", "D"]).get_json()['tournament_id']
        response = client.post(f'/api/tournaments/{tid}/matches/WR2M1/result',
                               json={'team1_score': 20, 'team2_score': 10})
        assert response.status_code == 409

    def test_bad_scores(self, client):
        """Scores must be integers."""
        tid = create(client, ["A", "B"]).get_json()['tournament_id']
        response = client.post(f'/api/tournaments/{tid}/matches/WR1M1/result',
                               json={'team1_score': 'lots'})
        assert response.status_code == 400

    def test_unknown_match(self, client):
        """Unknown match ids are a 404."""
        tid = create(client, ["A", "B"]).get_json()['tournament_id']
        response = client.post(f'/api/tournaments/{tid}/matches/WR5M1/result',
                               json={'team1_score': 20, 'team2_score': 10})
        assert response.status_code == 404

    def test_repair(self, client):
        """Repair returns the tournament."""
        tid = create(client, ["A", "B", "C"]).get_json()['tournament_id']
        response = client.post(f'/api/tournaments/{tid}/repair')
        assert response.status_code == 200
        assert response.get_json()['tournament_id'] == tid

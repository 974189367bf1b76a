from datetime import UTC, datetime

from sqlalchemy import or_

from latter.app import db


def utcnow_naive():
    """Return current UTC timestamp as naive datetime for DB timestamp columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class Player(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), default='')
    email = db.Column(db.String(120), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive())
    updated_at = db.Column(
        db.DateTime,
        default=lambda: utcnow_naive(),
        onupdate=lambda: utcnow_naive(),
    )

    @property
    def total_wins(self):
        return Challenge.query.filter(
            Challenge.completed.is_(True),
            Challenge.winner_id == self.id,
        ).count()

    @property
    def challenges_played(self):
        return Challenge.query.filter(
            Challenge.completed.is_(True),
            or_(Challenge.from_player_id == self.id, Challenge.to_player_id == self.id),
        ).count()

    @property
    def total_losses(self):
        return self.challenges_played - self.total_wins

    def to_summary(self):
        return {'id': self.id, 'name': self.name, 'email': self.email}

    def to_dict(self):
        wins = self.total_wins
        played = self.challenges_played
        return {
            'id': self.id, 'name': self.name, 'email': self.email,
            'total_wins': wins, 'total_losses': played - wins,
            'challenges_played': played,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }


class Challenge(db.Model):
    """A match proposed by one player to another; pending until scored once."""
    id = db.Column(db.Integer, primary_key=True)
    from_player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False, index=True)
    to_player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False, index=True)
    from_player_score = db.Column(db.Integer, nullable=True)
    to_player_score = db.Column(db.Integer, nullable=True)
    completed = db.Column(db.Boolean, default=False, nullable=False)
    winner_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive())
    updated_at = db.Column(
        db.DateTime,
        default=lambda: utcnow_naive(),
        onupdate=lambda: utcnow_naive(),
    )
    completed_at = db.Column(db.DateTime, nullable=True)

    from_player = db.relationship('Player', foreign_keys=[from_player_id], backref='challenges_sent')
    to_player = db.relationship('Player', foreign_keys=[to_player_id], backref='challenges_received')
    winner = db.relationship('Player', foreign_keys=[winner_id])

    @property
    def status(self):
        return 'completed' if self.completed else 'pending'

    def to_dict(self):
        return {
            'id': self.id,
            'from_player_id': self.from_player_id,
            'to_player_id': self.to_player_id,
            'from_player': self.from_player.to_summary() if self.from_player else None,
            'to_player': self.to_player.to_summary() if self.to_player else None,
            'from_player_score': self.from_player_score,
            'to_player_score': self.to_player_score,
            'completed': self.completed,
            'status': self.status,
            'winner_id': self.winner_id,
            'winner': self.winner.to_summary() if self.winner else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
        }

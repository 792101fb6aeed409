"""
Glicko-2 rating calculations.

Reference: Glickman (2012), "Example of the Glicko-2 system",
http://www.glicko.net/glicko/glicko2.pdf

Working scale: mu = (r - 1500) / 173.7178, phi = RD / 173.7178.
All functions are pure and deterministic; persisting results is the
caller's job.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from meta_engine.config import Config
from meta_engine.constants import GlickoConstants


@dataclass(frozen=True)
class GlickoRating:
    """A player's rating triple on the display scale."""
    rating: float
    rating_deviation: float
    volatility: float

    @classmethod
    def default(cls) -> 'GlickoRating':
        return cls(
            rating=Config.GLICKO_DEFAULT_RATING,
            rating_deviation=Config.GLICKO_DEFAULT_RD,
            volatility=Config.GLICKO_DEFAULT_VOLATILITY,
        )


@dataclass(frozen=True)
class GlickoGame:
    """One game outcome against a rated opponent."""
    opponent_rating: float
    opponent_rd: float
    score: float  # 1 = win, 0.5 = draw, 0 = loss


class Glicko2Calculator:
    """Handles Glicko-2 rating period updates"""
    
    @staticmethod
    def to_mu(rating: float) -> float:
        return (rating - GlickoConstants.BASE_RATING) / GlickoConstants.SCALE
    
    @staticmethod
    def to_phi(rating_deviation: float) -> float:
        return rating_deviation / GlickoConstants.SCALE
    
    @staticmethod
    def to_rating(mu: float) -> float:
        return GlickoConstants.SCALE * mu + GlickoConstants.BASE_RATING
    
    @staticmethod
    def to_rd(phi: float) -> float:
        return GlickoConstants.SCALE * phi
    
    @staticmethod
    def g(phi: float) -> float:
        """g(phi) = 1 / sqrt(1 + 3 phi^2 / pi^2)"""
        return 1 / math.sqrt(1 + (3 * phi * phi) / (math.pi * math.pi))
    
    @staticmethod
    def expected_score(mu: float, opponent_mu: float, g_opponent: float) -> float:
        """E(mu, mu_j, phi_j) = 1 / (1 + exp(-g(phi_j) (mu - mu_j)))"""
        return 1 / (1 + math.exp(-g_opponent * (mu - opponent_mu)))
    
    @staticmethod
    def synthesize_games(
        wins: int,
        losses: int,
        draws: int,
        opponent_rating: Optional[float] = None,
        opponent_rd: Optional[float] = None
    ) -> List[GlickoGame]:
        """
        Build the game list for a standings tally.
        
        Standings carry no pairings, so every game is played against the
        same synthetic average opponent.
        
        Args:
            wins: Games won in the rating period
            losses: Games lost in the rating period
            draws: Games drawn in the rating period
            opponent_rating: Synthetic opponent rating (defaults to config)
            opponent_rd: Synthetic opponent deviation (defaults to config)
            
        Returns:
            Wins first, then losses, then draws
        """
        if opponent_rating is None:
            opponent_rating = Config.GLICKO_SYNTHETIC_OPPONENT_RATING
        if opponent_rd is None:
            opponent_rd = Config.GLICKO_SYNTHETIC_OPPONENT_RD
        
        def games_of(count: int, score: float) -> List[GlickoGame]:
            return [GlickoGame(opponent_rating, opponent_rd, score)] * max(count, 0)
        
        return (
            games_of(wins, GlickoConstants.WIN_SCORE)
            + games_of(losses, GlickoConstants.LOSS_SCORE)
            + games_of(draws, GlickoConstants.DRAW_SCORE)
        )
    
    @staticmethod
    def new_volatility(sigma: float, phi: float, v: float, delta: float, tau: float) -> float:
        """
        Solve for the new volatility with the Illinois algorithm (step 5).
        
        Finds x = ln(sigma'^2) such that f(x) = 0. Both the bracket search
        and the root-finding are capped at MAX_ITERATIONS so lopsided
        records cannot loop forever.
        """
        a = math.log(sigma * sigma)
        delta2 = delta * delta
        phi2 = phi * phi
        
        def f(x: float) -> float:
            ex = math.exp(x)
            denom = phi2 + v + ex
            return (ex * (delta2 - phi2 - v - ex)) / (2 * denom * denom) - (x - a) / (tau * tau)
        
        # Step 5.2: bracket the root
        big_a = a
        if delta2 > phi2 + v:
            big_b = math.log(delta2 - phi2 - v)
        else:
            k = 1
            while f(a - k * tau) < 0 and k < GlickoConstants.MAX_ITERATIONS:
                k += 1
            big_b = a - k * tau
        
        f_a = f(big_a)
        f_b = f(big_b)
        
        # Step 5.4: Illinois iteration
        iterations = 0
        while abs(big_b - big_a) > GlickoConstants.EPSILON and iterations < GlickoConstants.MAX_ITERATIONS:
            if f_b == f_a:
                break
            big_c = big_a + (big_a - big_b) * f_a / (f_b - f_a)
            f_c = f(big_c)
            if f_c * f_b <= 0:
                big_a, f_a = big_b, f_b
            else:
                f_a = f_a / 2
            big_b, f_b = big_c, f_c
            iterations += 1
        
        return math.exp(big_a / 2)
    
    @staticmethod
    def update(
        current: GlickoRating,
        games: Sequence[GlickoGame],
        tau: Optional[float] = None
    ) -> GlickoRating:
        """
        Update a player's rating after one rating period.
        
        Args:
            current: Rating triple before the period
            games: Outcomes played during the period
            tau: System constant (defaults to config)
            
        Returns:
            Rating triple after the period; unchanged when no games were played
        """
        if not games:
            return current
        if tau is None:
            tau = Config.GLICKO_TAU
        
        # Step 2: convert to the Glicko-2 scale
        mu = Glicko2Calculator.to_mu(current.rating)
        phi = Glicko2Calculator.to_phi(current.rating_deviation)
        sigma = current.volatility
        
        # Step 3: estimated variance
        g_values = [Glicko2Calculator.g(Glicko2Calculator.to_phi(game.opponent_rd)) for game in games]
        e_values = [
            Glicko2Calculator.expected_score(mu, Glicko2Calculator.to_mu(game.opponent_rating), g_j)
            for game, g_j in zip(games, g_values)
        ]
        v_inverse = sum(g_j * g_j * e_j * (1 - e_j) for g_j, e_j in zip(g_values, e_values))
        v = 1 / v_inverse
        
        # Step 4: estimated improvement
        score_sum = sum(g_j * (game.score - e_j) for game, g_j, e_j in zip(games, g_values, e_values))
        delta = v * score_sum
        
        # Step 5: new volatility
        sigma_prime = Glicko2Calculator.new_volatility(sigma, phi, v, delta, tau)
        
        # Steps 6-7: new deviation and rating
        phi_star = math.sqrt(phi * phi + sigma_prime * sigma_prime)
        phi_prime = 1 / math.sqrt(1 / (phi_star * phi_star) + 1 / v)
        mu_prime = mu + phi_prime * phi_prime * score_sum
        
        # Step 8: back to the display scale
        return GlickoRating(
            rating=Glicko2Calculator.to_rating(mu_prime),
            rating_deviation=Glicko2Calculator.to_rd(phi_prime),
            volatility=sigma_prime,
        )
    
    @staticmethod
    def format_rating_change(delta: float) -> str:
        """Format a rating change for display"""
        rounded = round(delta)
        if rounded > 0:
            return f"+{rounded}"
        elif rounded < 0:
            return str(rounded)
        return "±0"
